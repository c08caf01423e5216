"""
Primary link store using Strategy Pattern.

The resolver only needs two things from the database:
- find an active link by token
- bump its click counter atomically

Keeping that behind an interface lets tests swap in fakes and keeps
SQL out of the resolver.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.sql import func

from shortlinks_app.database.connection import create_session_factory
from shortlinks_app.exceptions import StoreError, StoreUnavailableError
from shortlinks_app.models.short_link import ShortLink
from shortlinks_app.schemas.short_link import LinkRecord

# Errors raised by the driver/pool that mean "the store is not answering"
STORE_ERRORS = (SQLAlchemyError, OSError)


class LinkStoreStrategy(ABC):
    """
    Abstract base class for the primary link store.

    Lookup and increment are separate operations and never share a
    transaction.
    """

    @abstractmethod
    async def lookup_active(self, token: str) -> Optional[LinkRecord]:
        """
        Find an active link by token.

        Args:
            token: Short token (case-sensitive)

        Returns:
            LinkRecord snapshot, or None if absent or inactive

        Raises:
            StoreError: If the store cannot be queried
        """
        pass

    @abstractmethod
    async def increment_click_count(self, token: str) -> None:
        """
        Atomically add one to the link's click counter.

        Args:
            token: Short token

        Raises:
            StoreError: If the update fails
        """
        pass

    @abstractmethod
    async def ping(self) -> None:
        """
        Check the store is reachable.

        Raises:
            StoreUnavailableError: If it is not
        """
        pass


class SQLAlchemyLinkStore(LinkStoreStrategy):
    """
    Link store backed by the short_links table (PostgreSQL in production,
    SQLite in tests).

    The engine's connection pool is shared by every request; when all
    connections are busy callers queue inside SQLAlchemy until
    pool_timeout.
    """

    def __init__(self, engine: AsyncEngine, session_factory: Optional[async_sessionmaker] = None):
        """
        Initialize link store.

        Args:
            engine: Async engine owning the connection pool
            session_factory: Optional session factory (built from engine if omitted)
        """
        self.engine = engine
        self.session_factory = session_factory or create_session_factory(engine)

    async def lookup_active(self, token: str) -> Optional[LinkRecord]:
        stmt = select(ShortLink).where(
            ShortLink.token == token,
            ShortLink.is_active.is_(True),
        )

        try:
            async with self.session_factory() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except STORE_ERRORS as e:
            raise StoreError(f"Lookup failed for token {token!r}: {e}") from e

        if row is None:
            return None

        try:
            return LinkRecord.model_validate(row)
        except ValidationError as e:
            raise StoreError(f"Unreadable row for token {token!r}: {e}") from e

    async def increment_click_count(self, token: str) -> None:
        # Single UPDATE so concurrent redirects never lose a click
        stmt = (
            update(ShortLink)
            .where(ShortLink.token == token)
            .values(click_count=ShortLink.click_count + 1, updated_at=func.now())
        )

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(stmt)
        except STORE_ERRORS as e:
            raise StoreError(f"Click increment failed for token {token!r}: {e}") from e

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except STORE_ERRORS as e:
            raise StoreUnavailableError(f"Database is not reachable: {e}") from e
