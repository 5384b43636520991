"""
Translatable model mixin for SQLAlchemy declarative models.

Usage:
    class Article(TranslatableMixin, Base):
        __tablename__ = "articles"

        id: Mapped[int] = mapped_column(primary_key=True)
        slug: Mapped[str] = mapped_column(String(100))
        translations: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict)

    Article.translatable("title", "body", locales=["en", "fr"])
    Article.validates_translation("title", presence=True, length={"maximum": 120})

    article.translate("fr").title
    session.scalars(Article.where_translations({"title": "bonjour"}, locales=["fr"]))
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Iterable, Mapping, TypeVar

from sqlalchemy import Select, Table, event, inspect, select
from sqlalchemy.orm.attributes import set_committed_value

from jsonlocale.core.config import get_config
from jsonlocale.core.exceptions import (
    ConfigurationError,
    DatabaseColumnConflictError,
    MissingTranslationsColumnError,
    TranslationValidationError,
    UndefinedTranslatableFieldsError,
)
from jsonlocale.domain.normalizer import is_normalized, normalize
from jsonlocale.domain.schema import SchemaDescriptor, schema_registry
from jsonlocale.infrastructure.logging import LogContext, get_logger
from jsonlocale.query import build_predicate, where_translations
from jsonlocale.strategies.base import MatchMode, Predicate, StorageStrategy
from jsonlocale.validation.errors import TranslationErrors
from jsonlocale.validation.fields import lookup, validate_fields
from jsonlocale.validation.rules import CustomValidator, ValidationRule, build_rules
from jsonlocale.validation.structural import validate_structure
from jsonlocale.views import RESERVED_FIELD_NAMES, TranslationView, view_generator

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=type)


class TranslatableMixin:
    """Adds translated fields stored in one structured column."""

    _translatable_descriptor: ClassVar[SchemaDescriptor | None] = None
    _translatable_model: ClassVar[type | None] = None
    _translation_rules: ClassVar[tuple[ValidationRule, ...]] = ()
    _translation_strategy: ClassVar[StorageStrategy | None] = None
    _translations_attr: ClassVar[str] = "translations"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if type(self)._translatable_descriptor is not None:
            self._normalize_translations()

    # -- registration -------------------------------------------------------

    @classmethod
    def translatable(
        cls,
        *fields: str,
        locales: Iterable[str] | None = None,
        column: str | None = None,
        backend: str | None = None,
        sqlite_json: bool | None = None,
    ) -> SchemaDescriptor:
        """
        Declare the translated fields of this model.

        Args:
            fields: Translated field names
            locales: Locale codes; defaults to the configured available locales
            column: Structured column name; defaults to ``translations``
            backend: Backend identifier; defaults to the configured backend
            sqlite_json: Choose JSON (True) or flat-text (False) SQLite storage

        Returns:
            The registered schema descriptor

        Raises:
            UndefinedTranslatableFieldsError: No fields given
            MissingTranslationsColumnError: Column missing or of the wrong type
            DatabaseColumnConflictError: A field shadows a real column
            UnsupportedBackendError: No strategy for the backend
        """
        config = get_config()
        table = cls._mapped_table()

        if not fields:
            raise _undeclared_error(cls.__name__)
        _check_field_names(cls.__name__, fields)

        resolved_locales = list(locales) if locales is not None else config.available_locales()
        if not resolved_locales:
            raise ConfigurationError(
                f"Model {cls.__name__} declares no locales",
                details={"model": cls.__name__},
            )

        column_name = column or config.default_column_name
        strategy = StorageStrategy.for_backend(config.resolve_backend(backend), sqlite_json=sqlite_json)

        with LogContext(model=cls.__name__, column=column_name):
            declared = table.c[column_name].type if column_name in table.c else None
            _check_column(cls.__name__, table.name, column_name, strategy, declared)
            _check_conflicts(cls.__name__, column_names=_model_column_names(cls), fields=fields)

            descriptor = SchemaDescriptor(
                model_name=cls.__name__,
                table_name=table.name,
                fields=tuple(fields),
                locales=tuple(resolved_locales),
                column=column_name,
                backend=strategy.name,
                schema=table.schema,
            )

            cls._translatable_descriptor = descriptor
            cls._translatable_model = cls
            cls._translation_rules = ()
            cls._translation_strategy = strategy
            cls._translations_attr = cls.__mapper__.get_property_by_column(table.c[column_name]).key
            schema_registry.register(cls, descriptor)
            view_generator.forget(cls)
            _install_events(cls)

            logger.debug(
                f"Registered translatable model {cls.__name__}",
                context={"fields": list(descriptor.fields), "locales": list(descriptor.locales)},
            )
        return descriptor

    @classmethod
    def validates_translation(
        cls,
        *fields: str,
        custom: CustomValidator | None = None,
        **options: Any,
    ) -> list[ValidationRule]:
        """
        Add validation rules for translated fields.

        Options: ``presence=True``, ``length={"minimum": n, "maximum": m}``,
        ``format=pattern`` or ``format={"with": pattern}``, ``locales=[...]``.
        ``custom(record, locale, field, value)`` may add errors to
        ``record.translation_errors``.
        """
        rules = build_rules(cls.translation_descriptor(), fields, options, custom)
        cls._translation_rules = cls._translation_rules + tuple(rules)
        return rules

    @classmethod
    def translation_descriptor(cls) -> SchemaDescriptor:
        descriptor = cls._translatable_descriptor
        if descriptor is None:
            raise _undeclared_error(cls.__name__)
        return descriptor

    @classmethod
    def translation_rules(cls) -> tuple[ValidationRule, ...]:
        return cls._translation_rules

    @classmethod
    def database_strategy(cls) -> StorageStrategy:
        strategy = cls._translation_strategy
        if strategy is None:
            raise _undeclared_error(cls.__name__)
        return strategy

    @classmethod
    def translations_permit_list(cls) -> dict[str, dict[str, list[str]]]:
        return cls.translation_descriptor().permit_list()

    @classmethod
    def translation_view_type(cls) -> type[TranslationView]:
        descriptor = cls.translation_descriptor()
        return view_generator.view_type_for(cls._translatable_model, descriptor.fields)

    @classmethod
    def check_translation_schema(cls, bind: Any) -> None:
        """
        Check the live database schema and log the index advisory.

        Args:
            bind: Sync Engine or Connection
        """
        descriptor = cls.translation_descriptor()
        strategy = cls.database_strategy()
        table = cls._mapped_table()

        columns = {
            column["name"]: column["type"]
            for column in inspect(bind).get_columns(table.name, schema=table.schema)
        }
        _check_column(cls.__name__, table.name, descriptor.column, strategy, columns.get(descriptor.column))
        _check_conflicts(cls.__name__, column_names=columns, fields=descriptor.fields)
        strategy.validate_index_recommendation(cls, descriptor.column, bind)

    # -- queries ------------------------------------------------------------

    @classmethod
    def translation_predicate(
        cls,
        attributes: Mapping[str, Any],
        locales: Iterable[str] | None = None,
        case_sensitive: bool = False,
        match: MatchMode | None = None,
    ) -> Predicate:
        return build_predicate(
            cls.translation_descriptor(),
            cls.database_strategy(),
            attributes,
            locales=locales,
            case_sensitive=case_sensitive,
            match=match,
        )

    @classmethod
    def translation_filter(
        cls,
        attributes: Mapping[str, Any],
        locales: Iterable[str] | None = None,
        case_sensitive: bool = False,
        match: MatchMode | None = None,
    ) -> Any:
        return where_translations(
            cls.translation_descriptor(),
            cls.database_strategy(),
            attributes,
            locales=locales,
            case_sensitive=case_sensitive,
            match=match,
        )

    @classmethod
    def where_translations(
        cls,
        attributes: Mapping[str, Any],
        locales: Iterable[str] | None = None,
        case_sensitive: bool = False,
        match: MatchMode | None = None,
    ) -> Select:
        """
        ``select(Model)`` filtered by translated values.

        An empty ``attributes`` mapping matches no rows.
        """
        return select(cls).where(
            cls.translation_filter(attributes, locales=locales, case_sensitive=case_sensitive, match=match)
        )

    # -- instance API -------------------------------------------------------

    @property
    def translation_errors(self) -> TranslationErrors:
        errors = self.__dict__.get("_translation_errors")
        if errors is None:
            errors = self.__dict__["_translation_errors"] = TranslationErrors()
        return errors

    def translate(self, locale: str | None = None) -> TranslationView:
        """Read-only view of this record's fields in ``locale``."""
        descriptor = self.translation_descriptor()
        if locale is None:
            locale = get_config().current_locale()
        return view_generator.translation_for(
            self._translatable_model,
            descriptor.fields,
            getattr(self, self._translations_attr, None),
            str(locale),
        )

    def get_translation(self, locale: str, field: str) -> Any:
        return lookup(getattr(self, self._translations_attr, None), str(locale), str(field))

    def set_translation(self, locale: str, field: str, value: Any) -> None:
        """Write one value, assigning a new mapping so the change is tracked."""
        descriptor = self.translation_descriptor()
        (field,) = descriptor.check_fields([field])
        (locale,) = descriptor.check_locales([locale])
        data = normalize(getattr(self, self._translations_attr, None), descriptor)
        _locale_fields(data, locale, descriptor)[field] = value
        setattr(self, self._translations_attr, data)

    def update_translations(self, locale: str, **values: Any) -> None:
        descriptor = self.translation_descriptor()
        fields = descriptor.check_fields(values)
        (locale,) = descriptor.check_locales([locale])
        data = normalize(getattr(self, self._translations_attr, None), descriptor)
        locale_fields = _locale_fields(data, locale, descriptor)
        for field in fields:
            locale_fields[field] = values[field]
        setattr(self, self._translations_attr, data)

    def validate_translations(self) -> TranslationErrors:
        """Normalize, then run structural and field validation."""
        descriptor = self.translation_descriptor()
        errors = self.translation_errors
        errors.clear()

        self._normalize_translations()
        data = getattr(self, self._translations_attr, None)
        validate_structure(data, descriptor, errors)
        validate_fields(self, data, self._translation_rules, descriptor, errors)
        return errors

    def is_translation_valid(self) -> bool:
        return not self.validate_translations()

    def _normalize_translations(self, committed: bool = False) -> None:
        descriptor = self.translation_descriptor()
        current = getattr(self, self._translations_attr, None)
        if is_normalized(current, descriptor):
            return
        normalized = normalize(current, descriptor)
        if committed:
            set_committed_value(self, self._translations_attr, normalized)
        else:
            setattr(self, self._translations_attr, normalized)

    @classmethod
    def _mapped_table(cls) -> Table:
        table = getattr(cls, "__table__", None)
        if not isinstance(table, Table):
            raise ConfigurationError(
                f"{cls.__name__} must be a mapped declarative model with a __table__",
                details={"model": cls.__name__},
            )
        return table


def translatable(*fields: str, **kwargs: Any) -> Callable[[ModelT], ModelT]:
    """Class decorator form of ``TranslatableMixin.translatable``."""

    def decorator(cls: ModelT) -> ModelT:
        cls.translatable(*fields, **kwargs)  # type: ignore[attr-defined]
        return cls

    return decorator


def _locale_fields(data: dict[str, Any], locale: str, descriptor: SchemaDescriptor) -> dict[str, Any]:
    fields = data.get(locale)
    if not isinstance(fields, dict):
        # a scalar or list stored under the locale is replaced
        fields = data[locale] = {field: None for field in descriptor.fields}
    return fields


def _undeclared_error(model_name: str) -> UndefinedTranslatableFieldsError:
    return UndefinedTranslatableFieldsError(
        f"Model {model_name} must call `translatable` with field names. Example:\n"
        f"    {model_name}.translatable(\"title\", \"content\")",
        details={"model": model_name},
    )


def _check_field_names(model_name: str, fields: Iterable[str]) -> None:
    for field in fields:
        if not isinstance(field, str) or not field.isidentifier():
            raise ConfigurationError(
                f"Translatable field {field!r} on {model_name} is not a valid identifier",
                details={"model": model_name, "field": field},
            )
        if field in RESERVED_FIELD_NAMES:
            raise ConfigurationError(
                f"Translatable field {field!r} on {model_name} clashes with a translation view attribute",
                details={"model": model_name, "field": field},
            )


def _check_column(
    model_name: str,
    table_name: str,
    column: str,
    strategy: StorageStrategy,
    declared_type: Any,
) -> None:
    if declared_type is not None and strategy.accepts_column_type(declared_type):
        return
    raise MissingTranslationsColumnError(
        f"Model {model_name} is missing a '{column}' {strategy.expected_column_type()} column. "
        f"Please add it via a migration:\n{strategy.migration_example(table_name, column)}",
        model=model_name,
        column=column,
    )


def _check_conflicts(model_name: str, column_names: Iterable[str], fields: Iterable[str]) -> None:
    field_set = set(fields)
    conflicting = [name for name in column_names if name in field_set]
    if conflicting:
        raise DatabaseColumnConflictError(
            f"Model {model_name} has database columns that conflict with translatable fields. "
            f"Translatable fields should not exist as actual database columns.\n\n"
            f"Conflicting columns: {', '.join(conflicting)}",
            columns=conflicting,
        )


def _model_column_names(cls: type) -> list[str]:
    names = [column.name for column in cls.__table__.columns]  # type: ignore[attr-defined]
    for prop in cls.__mapper__.column_attrs:  # type: ignore[attr-defined]
        if prop.key not in names:
            names.append(prop.key)
    return names


def _on_load(target: TranslatableMixin, context: Any) -> None:
    # deferred column: normalized on the refresh that loads it
    if target._translations_attr in inspect(target).unloaded:
        return
    target._normalize_translations(committed=True)


def _on_refresh(target: TranslatableMixin, context: Any, attrs: Iterable[str] | None) -> None:
    if attrs is None or target._translations_attr in attrs:
        target._normalize_translations(committed=True)


def _before_save(mapper: Any, connection: Any, target: TranslatableMixin) -> None:
    errors = target.validate_translations()
    if errors:
        raise TranslationValidationError(type(target).__name__, errors)


def _install_events(cls: type) -> None:
    listeners = (
        ("load", _on_load),
        ("refresh", _on_refresh),
        ("before_insert", _before_save),
        ("before_update", _before_save),
    )
    for identifier, fn in listeners:
        if not event.contains(cls, identifier, fn):
            event.listen(cls, identifier, fn)
