"""
Configuration for jsonlocale.

Settings come from the environment (``JSONLOCALE_`` prefix), an optional YAML
file, or programmatic overrides. The process-wide configuration also carries
the two callables the host application supplies for locale lookup.

Usage:
    from jsonlocale.core.config import configure, load_settings

    configure(load_settings("config/jsonlocale.yaml"))
    configure(available_locales=["en", "fr"], backend="postgresql")
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Callable

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from jsonlocale.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/jsonlocale.yaml"


class JsonLocaleSettings(BaseSettings):
    """Settings for translatable models."""

    model_config = SettingsConfigDict(
        env_prefix="JSONLOCALE_",
        extra="ignore",
    )

    default_column_name: str = "translations"
    available_locales: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["en"])
    default_locale: str = "en"
    backend: str | None = None
    database_url: str | None = None
    sqlite_json: bool = True
    log_level: str = "INFO"

    @field_validator("available_locales", mode="before")
    @classmethod
    def _split_locales(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@dataclass
class JsonLocaleConfig:
    """
    Process-wide configuration.

    Attributes:
        settings: Static settings
        locale_provider: Returns the locale used when ``translate()`` is
            called without one
        available_locales_provider: Returns the locales a model gets when
            ``translatable()`` is called without ``locales``
    """
    settings: JsonLocaleSettings = field(default_factory=JsonLocaleSettings)
    locale_provider: Callable[[], str] | None = None
    available_locales_provider: Callable[[], list[str]] | None = None

    @property
    def default_column_name(self) -> str:
        return self.settings.default_column_name

    def current_locale(self) -> str:
        if self.locale_provider is not None:
            return str(self.locale_provider())
        return self.settings.default_locale

    def available_locales(self) -> list[str]:
        if self.available_locales_provider is not None:
            return [str(locale) for locale in self.available_locales_provider()]
        return list(self.settings.available_locales)

    def resolve_backend(self, explicit: str | None = None) -> str:
        """
        Resolve the backend identifier for a model.

        Precedence: explicit argument, ``backend`` setting, backend name of
        ``database_url``.
        """
        if explicit:
            return explicit
        if self.settings.backend:
            return self.settings.backend
        if self.settings.database_url:
            try:
                return make_url(self.settings.database_url).get_backend_name()
            except ArgumentError as e:
                raise ConfigurationError(
                    f"Cannot parse database_url: {e}",
                    details={"config_key": "database_url"},
                ) from e
        raise ConfigurationError(
            "No database backend configured. Pass backend= to translatable(), "
            "or set JSONLOCALE_BACKEND or JSONLOCALE_DATABASE_URL.",
            details={"config_key": "backend"},
        )


def load_settings(
    config_path: str | Path | None = None,
    **overrides: Any,
) -> JsonLocaleSettings:
    """
    Load settings from a YAML or JSON file, then the environment.

    File values take precedence over environment variables; ``overrides``
    take precedence over both.

    Args:
        config_path: Path to config file (YAML or JSON)
        overrides: Explicit setting values

    Returns:
        Loaded settings
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    data = json.load(f)
                else:
                    logger.warning(f"Unknown config format: {path.suffix}")
        else:
            logger.debug(f"Config file not found: {path}")

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping",
            details={"config_path": str(config_path)},
        )

    section = dict(data["jsonlocale"] or {}) if "jsonlocale" in data else dict(data)
    section.update(overrides)
    return JsonLocaleSettings(**section)


_global_config: JsonLocaleConfig | None = None
_config_lock = threading.Lock()


def get_config() -> JsonLocaleConfig:
    """Get the global configuration."""
    global _global_config
    if _global_config is None:
        with _config_lock:
            if _global_config is None:
                config_path = os.environ.get("JSONLOCALE_CONFIG", DEFAULT_CONFIG_PATH)
                _global_config = JsonLocaleConfig(settings=load_settings(config_path))
    return _global_config


def set_config(config: JsonLocaleConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def configure(
    settings: JsonLocaleSettings | None = None,
    *,
    locale_provider: Callable[[], str] | None = None,
    available_locales_provider: Callable[[], list[str]] | None = None,
    **overrides: Any,
) -> JsonLocaleConfig:
    """
    Replace the global configuration.

    Args:
        settings: Base settings; loaded from the environment when omitted
        locale_provider: Current-locale callable
        available_locales_provider: Default-locales callable
        overrides: Individual setting values applied on top of ``settings``

    Returns:
        The new configuration
    """
    if settings is None:
        settings = JsonLocaleSettings(**overrides)
    elif overrides:
        settings = settings.model_copy(update=overrides)

    config = JsonLocaleConfig(
        settings=settings,
        locale_provider=locale_provider,
        available_locales_provider=available_locales_provider,
    )
    set_config(config)
    return config


def reset_config() -> None:
    """Drop the global configuration so the next access reloads it."""
    global _global_config
    _global_config = None
