"""
Database engine and session management.

The engine (and its connection pool) is created by the application
lifespan and handed to the link store explicitly; nothing here is a
module-level singleton.
"""

from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlinks_app.config import Settings


class Base(DeclarativeBase):
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the primary store.

    Pool sizing only applies to server databases; SQLite (used by the
    test suite) keeps SQLAlchemy's default pool.

    Args:
        settings: Application settings

    Returns:
        AsyncEngine bound to settings.database_url
    """
    options: Dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}

    if make_url(settings.database_url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory used by the link store. One short session per operation."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create the short_links table if it doesn't exist."""
    # Import models to ensure they're registered with Base
    from shortlinks_app.models import ShortLink  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def mask_database_url(database_url: str) -> str:
    """Render a database URL for logs with the password hidden."""
    return make_url(database_url).render_as_string(hide_password=True)
