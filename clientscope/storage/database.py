"""Async database engine and table bootstrap."""

from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from clientscope.config.settings import get_settings
from clientscope.exceptions import ConfigError, StorageError


@lru_cache
def get_engine() -> AsyncEngine:
    """Return a cached async database engine (singleton per process)."""
    settings = get_settings()
    scheme = settings.database_url.split("://", 1)[0]
    if "+" not in scheme:
        raise ConfigError(
            f"DATABASE_URL must name an async driver (e.g. postgresql+asyncpg), got {scheme!r}"
        )
    if settings.database_url.startswith("sqlite"):
        if ":memory:" in settings.database_url:
            # One shared connection, otherwise every checkout sees an empty database
            return create_async_engine(
                settings.database_url, echo=settings.debug, poolclass=StaticPool
            )
        return create_async_engine(settings.database_url, echo=settings.debug)
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables (for dev/testing only)."""
    from clientscope.models import database  # noqa: F401  register tables

    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    except SQLAlchemyError as exc:
        raise StorageError("Failed to create tables") from exc
