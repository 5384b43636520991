"""
Tests for storage strategies.

PostgreSQL and MySQL predicates are checked as SQL text plus bound
parameters; the SQLite predicates run end to end in test_mixin.
"""

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import JSON, Column, Index, Integer, MetaData, Table, Text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError

from jsonlocale.core.exceptions import UnsupportedBackendError, UnsupportedCapabilityError
from jsonlocale.strategies import (
    JSONText,
    MySQLStrategy,
    PostgreSQLStrategy,
    Predicate,
    SQLiteStrategy,
    SQLiteTextStrategy,
    StorageStrategy,
    json_path,
    normalize_backend_name,
    strategy_for_backend,
    type_name,
)

COLUMN = "articles.translations"


def _model(name="Article", gin_index=False):
    metadata = MetaData()
    table = Table(
        "articles",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("translations", JSONB),
    )
    if gin_index:
        Index("ix_articles_translations", table.c.translations, postgresql_using="gin")
    return type(name, (), {"__table__": table})


class TestBackendResolution:
    """Tests for resolving backend identifiers to shared strategies."""

    @pytest.mark.parametrize(
        "backend, expected",
        [
            ("postgresql", PostgreSQLStrategy),
            ("PostgreSQL", PostgreSQLStrategy),
            ("postgres", PostgreSQLStrategy),
            ("postgresql+asyncpg", PostgreSQLStrategy),
            ("postgresql://user@localhost/app", PostgreSQLStrategy),
            ("mysql", MySQLStrategy),
            ("mysql+pymysql", MySQLStrategy),
            ("mariadb", MySQLStrategy),
            ("sqlite", SQLiteStrategy),
            ("sqlite+aiosqlite", SQLiteStrategy),
        ],
    )
    def test_known_backends(self, backend, expected):
        assert type(StorageStrategy.for_backend(backend)) is expected

    def test_sqlite_text_variant(self):
        assert type(StorageStrategy.for_backend("sqlite", sqlite_json=False)) is SQLiteTextStrategy

    def test_sqlite_variant_follows_settings(self, jsonlocale_config):
        jsonlocale_config.settings = jsonlocale_config.settings.model_copy(update={"sqlite_json": False})
        assert type(strategy_for_backend("sqlite")) is SQLiteTextStrategy

    def test_unsupported_backend_names_identifier(self):
        with pytest.raises(UnsupportedBackendError) as exc_info:
            StorageStrategy.for_backend("oracle")

        assert "oracle" in str(exc_info.value)
        assert exc_info.value.backend == "oracle"
        assert exc_info.value.details["backend"] == "oracle"

    def test_normalize_backend_name(self):
        assert normalize_backend_name(" MariaDB ") == "mysql"
        assert normalize_backend_name("postgresql+psycopg") == "postgresql"

    def test_instances_are_shared(self):
        first = StorageStrategy.for_backend("postgresql")
        second = StorageStrategy.for_backend("postgres")

        assert first is second
        assert StorageStrategy.for_backend("sqlite") is not StorageStrategy.for_backend(
            "sqlite", sqlite_json=False
        )

    def test_concurrent_first_use_yields_one_instance(self):
        barrier = threading.Barrier(8)

        def resolve(_):
            barrier.wait()
            return strategy_for_backend("mysql")

        with ThreadPoolExecutor(max_workers=8) as pool:
            instances = list(pool.map(resolve, range(8)))

        assert len({id(instance) for instance in instances}) == 1


class TestPredicate:
    """Tests for the Predicate value object."""

    def test_never_matches_nothing(self):
        predicate = Predicate.never()

        assert predicate.sql == "1 = 0"
        assert predicate.params == ()

    def test_param_names_follow_positions(self):
        predicate = Predicate("(a = :tr_0 OR b = :tr_1)", ("x", "y"))
        assert predicate.param_names == ["tr_0", "tr_1"]

    def test_to_clause_binds_values(self):
        clause = Predicate("(a = :tr_0)", ("x",)).to_clause()
        compiled = clause.compile(dialect=sqlite.dialect())

        assert list(compiled.params.values()) == ["x"]
        assert ":tr_0" not in str(compiled)

    def test_json_path(self):
        assert json_path("en", "title") == "$.en.title"
        assert json_path("pt-BR", "title") == '$."pt-BR".title'


class TestPostgreSQLStrategy:
    """Tests for PostgreSQLStrategy."""

    @pytest.fixture
    def strategy(self):
        return PostgreSQLStrategy()

    def test_column_type(self, strategy):
        assert isinstance(strategy.column_type(), JSONB)
        assert strategy.expected_column_type() == "JSONB"

    def test_accepts_column_type(self, strategy):
        assert strategy.accepts_column_type(JSONB())
        assert strategy.accepts_column_type(JSON().with_variant(JSONB(), "postgresql"))
        assert not strategy.accepts_column_type(JSON())
        assert not strategy.accepts_column_type(Text())

    def test_case_insensitive_single_locale(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "hello"}, ["en"])

        assert predicate.sql == f"(({COLUMN} -> :tr_0 ->> :tr_1) ILIKE :tr_2)"
        assert predicate.params == ("en", "title", "hello")

    def test_one_disjunct_per_locale(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "hello"}, ["en", "fr"])

        assert predicate.sql == (
            f"(({COLUMN} -> :tr_0 ->> :tr_1) ILIKE :tr_2"
            f" OR ({COLUMN} -> :tr_3 ->> :tr_4) ILIKE :tr_5)"
        )
        assert predicate.params == ("en", "title", "hello", "fr", "title", "hello")

    def test_fields_within_locale_are_ored_by_default(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "a", "body": "b"}, ["en"])

        assert predicate.sql == (
            f"((({COLUMN} -> :tr_0 ->> :tr_1) ILIKE :tr_2"
            f" OR ({COLUMN} -> :tr_3 ->> :tr_4) ILIKE :tr_5))"
        )

    def test_match_all_ands_fields(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "a", "body": "b"}, ["en"], match="all")

        assert predicate.sql == (
            f"((({COLUMN} -> :tr_0 ->> :tr_1) ILIKE :tr_2"
            f" AND ({COLUMN} -> :tr_3 ->> :tr_4) ILIKE :tr_5))"
        )

    def test_match_any_ors_fields(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "a", "body": "b"}, ["en"], match="any")
        assert " OR " in predicate.sql
        assert " AND " not in predicate.sql

    def test_case_sensitive_uses_containment_of_whole_mapping(self, strategy):
        predicate = strategy.build_predicate(
            COLUMN, {"title": "Hello", "body": "World"}, ["en", "fr"], case_sensitive=True
        )

        assert predicate.sql == (
            f"({COLUMN} @> CAST(:tr_0 AS JSONB) OR {COLUMN} @> CAST(:tr_1 AS JSONB))"
        )
        assert json.loads(predicate.params[0]) == {"en": {"title": "Hello", "body": "World"}}
        assert json.loads(predicate.params[1]) == {"fr": {"title": "Hello", "body": "World"}}

    def test_case_sensitive_match_any_contains_each_field(self, strategy):
        predicate = strategy.build_predicate(
            COLUMN, {"title": "Hello", "body": "World"}, ["en"], case_sensitive=True, match="any"
        )

        assert predicate.sql == (
            f"(({COLUMN} @> CAST(:tr_0 AS JSONB) OR {COLUMN} @> CAST(:tr_1 AS JSONB)))"
        )
        assert [json.loads(p) for p in predicate.params] == [
            {"en": {"title": "Hello"}},
            {"en": {"body": "World"}},
        ]

    def test_default_match(self, strategy):
        assert strategy.default_match(case_sensitive=False) == "any"
        assert strategy.default_match(case_sensitive=True) == "all"
        assert SQLiteStrategy().default_match(case_sensitive=True) == "any"

    def test_column_reference_quotes_reserved_words(self, strategy):
        assert strategy.column_reference("articles", "translations") == "articles.translations"
        assert strategy.column_reference("order", "translations") == '"order".translations'
        assert strategy.column_reference("Order", "translations") == '"Order".translations'
        assert strategy.column_reference("order", "translations", schema="shop") == 'shop."order".translations'
        assert strategy.column_reference(None, "translations") == "translations"

    def test_values_are_never_interpolated(self, strategy):
        hostile = "x') OR 1=1 --"
        predicate = strategy.build_predicate(COLUMN, {"title": hostile}, ["en"])

        assert hostile not in predicate.sql
        assert hostile in predicate.params

    def test_clause_compiles_for_postgresql(self, strategy):
        clause = strategy.build_predicate(COLUMN, {"title": "hello"}, ["en"]).to_clause()
        compiled = clause.compile(dialect=postgresql.dialect())

        assert "ILIKE" in str(compiled)
        assert sorted(compiled.params.values()) == ["en", "hello", "title"]

    def test_invalid_match_mode(self, strategy):
        with pytest.raises(ValueError):
            strategy.build_predicate(COLUMN, {"title": "a"}, ["en"], match="some")

    def test_empty_attributes_match_nothing(self, strategy):
        assert strategy.build_predicate(COLUMN, {}, ["en"]) == Predicate.never()

    def test_migration_example_names_table_and_column(self, strategy):
        example = strategy.migration_example("articles", "translations")

        assert '"articles"' in example
        assert '"translations"' in example
        assert "JSONB" in example


class TestMySQLStrategy:
    """Tests for MySQLStrategy."""

    @pytest.fixture
    def strategy(self):
        return MySQLStrategy()

    def test_case_insensitive_uses_path_extraction(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "hello"}, ["en"])

        assert predicate.sql == (
            f"(UPPER(JSON_UNQUOTE(JSON_EXTRACT({COLUMN}, :tr_0))) LIKE UPPER(:tr_1))"
        )
        assert predicate.params == ("$.en.title", "hello")

    def test_case_sensitive_uses_json_contains(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": "Hello"}, ["en"], case_sensitive=True)

        assert predicate.sql == f"(JSON_CONTAINS({COLUMN}, :tr_0))"
        assert json.loads(predicate.params[0]) == {"en": {"title": "Hello"}}

    def test_column_reference_uses_backticks(self, strategy):
        assert strategy.column_reference("order", "translations") == "`order`.translations"
        assert strategy.column_reference("articles", "translations") == "articles.translations"

    def test_non_string_values_are_stringified(self, strategy):
        predicate = strategy.build_predicate(COLUMN, {"title": 42}, ["en"])
        assert predicate.params[-1] == "42"

    def test_column_type(self, strategy):
        assert strategy.expected_column_type() == "JSON"
        assert strategy.accepts_column_type(JSON())


class TestSQLiteStrategies:
    """Tests for the SQLite variants."""

    def test_json_variant_case_insensitive(self):
        predicate = SQLiteStrategy().build_predicate(COLUMN, {"title": "hello"}, ["en"])

        assert predicate.sql == f"(json_extract({COLUMN}, :tr_0) LIKE :tr_1 COLLATE NOCASE)"
        assert predicate.params == ("$.en.title", "hello")

    def test_json_variant_case_sensitive(self):
        predicate = SQLiteStrategy().build_predicate(
            COLUMN, {"title": "Hello"}, ["en"], case_sensitive=True
        )
        assert predicate.sql == f"(json_extract({COLUMN}, :tr_0) = :tr_1)"

    def test_column_reference_quotes_reserved_words(self):
        assert SQLiteStrategy().column_reference("order", "translations") == '"order".translations'
        assert SQLiteTextStrategy().column_reference("group", "i18n") == '"group".i18n'

    def test_text_variant_cannot_query(self):
        strategy = SQLiteTextStrategy()

        with pytest.raises(UnsupportedCapabilityError) as exc_info:
            strategy.build_predicate(COLUMN, {"title": "hello"}, ["en"])

        assert isinstance(exc_info.value, NotImplementedError)
        assert exc_info.value.strategy == "SQLiteTextStrategy"
        assert "SQLiteTextStrategy" in str(exc_info.value)

    def test_text_variant_column_type(self):
        strategy = SQLiteTextStrategy()

        assert isinstance(strategy.column_type(), JSONText)
        assert strategy.accepts_column_type(JSONText())
        assert strategy.accepts_column_type(Text())
        assert not strategy.accepts_column_type(JSON())

    def test_json_text_round_trip_through_type(self):
        json_text = JSONText()
        dialect = sqlite.dialect()

        stored = json_text.process_bind_param({"en": {"title": "Olá"}}, dialect)

        assert stored == '{"en": {"title": "Olá"}}'
        assert json_text.process_result_value(stored, dialect) == {"en": {"title": "Olá"}}
        assert json_text.process_result_value(None, dialect) is None

    def test_type_name(self):
        assert type_name(JSONText()) == "TEXT"
        assert type_name(JSON()) == "JSON"


class TestIndexAdvisory:
    """Tests for the one-time index advisory."""

    def test_postgresql_warns_without_gin_index(self, caplog):
        strategy = PostgreSQLStrategy()

        with caplog.at_level(logging.WARNING):
            assert strategy.validate_index_recommendation(_model(), "translations") is True

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert "GIN index" in record.getMessage()
        assert 'postgresql_using="gin"' in record.getMessage()
        assert record.context["model"] == "Article"
        assert record.context["column"] == "translations"

    def test_postgresql_silent_with_gin_index(self, caplog):
        strategy = PostgreSQLStrategy()

        with caplog.at_level(logging.WARNING):
            assert strategy.validate_index_recommendation(_model(gin_index=True), "translations") is False

        assert caplog.records == []

    def test_advisory_is_emitted_once(self, caplog):
        strategy = PostgreSQLStrategy()

        with caplog.at_level(logging.WARNING):
            strategy.validate_index_recommendation(_model("Article"), "translations")
            strategy.validate_index_recommendation(_model("Page"), "translations")

        assert len(caplog.records) == 1

    def test_advisory_is_emitted_once_under_concurrency(self, caplog):
        strategy = MySQLStrategy()
        model = _model()
        barrier = threading.Barrier(8)

        def advise(_):
            barrier.wait()
            return strategy.validate_index_recommendation(model, "translations")

        with caplog.at_level(logging.WARNING):
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(advise, range(8)))

        assert results.count(True) == 1
        assert len([r for r in caplog.records if "functional indexes" in r.getMessage()]) == 1

    def test_sqlite_has_no_advisory(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert SQLiteStrategy().validate_index_recommendation(_model(), "translations") is False

        assert caplog.records == []

    def test_failed_inspection_is_retried(self, caplog):
        class FlakyStrategy(PostgreSQLStrategy):
            calls = 0

            def _index_advisory(self, model, column, bind):
                type(self).calls += 1
                if self.calls == 1:
                    raise SQLAlchemyError("connection lost")
                return super()._index_advisory(model, column, bind)

        strategy = FlakyStrategy()

        with caplog.at_level(logging.WARNING):
            assert strategy.validate_index_recommendation(_model(), "translations") is False
            assert strategy.validate_index_recommendation(_model(), "translations") is True
            assert strategy.validate_index_recommendation(_model(), "translations") is False

        assert FlakyStrategy.calls == 2
        assert len([r for r in caplog.records if "GIN index" in r.getMessage()]) == 1
