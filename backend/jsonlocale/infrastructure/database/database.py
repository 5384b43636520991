"""
Engine and session helpers for translatable models.
"""

from contextlib import contextmanager
from typing import Any, AsyncGenerator, Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session, sessionmaker

from jsonlocale.core.config import JsonLocaleSettings, get_config
from jsonlocale.core.exceptions import ConfigurationError
from jsonlocale.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _database_url(settings: JsonLocaleSettings | None) -> str:
    settings = settings or get_config().settings
    if not settings.database_url:
        raise ConfigurationError(
            "database_url is not configured (set JSONLOCALE_DATABASE_URL)",
            details={"config_key": "database_url"},
        )
    return settings.database_url


def create_engine_from_settings(
    settings: JsonLocaleSettings | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a sync engine for ``settings.database_url``."""
    url = _database_url(settings)
    kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, **kwargs)
    logger.debug("Created engine", context={"backend": engine.dialect.name})
    return engine


def create_async_engine_from_settings(
    settings: JsonLocaleSettings | None = None,
    **kwargs: Any,
) -> AsyncEngine:
    """Create an async engine for ``settings.database_url``."""
    url = _database_url(settings)
    kwargs.setdefault("pool_pre_ping", True)
    engine = create_async_engine(url, **kwargs)
    logger.debug("Created async engine", context={"backend": engine.dialect.name})
    return engine


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Session that commits on success and rolls back on error."""
    factory = sessionmaker(engine, expire_on_commit=False)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database session error: {e}")
        session.rollback()
        raise
    finally:
        session.close()


async def get_async_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get an async session bound to ``engine``."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise


def detect_backend(bind: Any) -> str:
    """
    Return the dialect name for an engine, connection or session.

    Args:
        bind: Engine, AsyncEngine, Connection, Session or AsyncSession

    Returns:
        Dialect name such as ``postgresql`` or ``sqlite``
    """
    if isinstance(bind, (Session, AsyncSession)):
        bind = bind.get_bind()
    if isinstance(bind, (Engine, AsyncEngine, Connection)):
        return bind.dialect.name
    dialect = getattr(bind, "dialect", None)
    if dialect is not None:
        return dialect.name
    raise ConfigurationError(
        f"Cannot detect database backend from {type(bind).__name__}",
    )
