"""
Test configuration and fixtures for the short links service.
This centralizes all test setup, making individual tests clean.

The primary store is a SQLite file (via aiosqlite) in a per-test
temporary directory, so tests are isolated and don't affect each other.
"""

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine

from shortlinks_app.config import Settings
from shortlinks_app.database.connection import create_session_factory, init_db
from shortlinks_app.models.short_link import ShortLink
from shortlinks_app.storage.strategies import SQLAlchemyLinkStore


@pytest.fixture(scope="function")
def db_url(tmp_path):
    """Fresh SQLite database per test"""
    return f"sqlite+aiosqlite:///{tmp_path / 'shortlinks.db'}"


@pytest.fixture(scope="function")
def links_csv(tmp_path):
    """Path for the fallback CSV (not created until a test writes it)"""
    return tmp_path / "links.csv"


@pytest.fixture(scope="function")
def settings(db_url, links_csv):
    """Settings pointing at the test database and CSV, ignoring any .env file"""
    return Settings(
        _env_file=None,
        database_url=db_url,
        fallback_links_path=str(links_csv),
        cache_backend="memory",
        cache_ttl=300,
        cache_max_entries=100,
        log_level="DEBUG",
    )


@pytest.fixture(scope="function")
def run_with_store(db_url):
    """
    Run an async scenario against a real SQLAlchemyLinkStore.

    The engine is created and disposed inside the scenario's event loop.
    Usage:
        result = run_with_store(lambda store: store.lookup_active("abc"))
    """
    def run(scenario):
        async def main():
            engine = create_async_engine(db_url)
            await init_db(engine)
            try:
                return await scenario(SQLAlchemyLinkStore(engine))
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return run


@pytest.fixture(scope="function")
def seed_links(db_url):
    """
    Insert short_links rows.
    Usage:
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 5})
    """
    async def seed(links):
        engine = create_async_engine(db_url)
        await init_db(engine)
        try:
            async with create_session_factory(engine)() as session:
                session.add_all([ShortLink(**link) for link in links])
                await session.commit()
        finally:
            await engine.dispose()

    def run(*links):
        asyncio.run(seed(links))

    return run


@pytest.fixture(scope="function")
def click_count(db_url):
    """Read a token's click_count straight from the database"""
    async def fetch(token):
        engine = create_async_engine(db_url)
        try:
            async with create_session_factory(engine)() as session:
                result = await session.execute(select(ShortLink.click_count).where(ShortLink.token == token))
                return result.scalar_one()
        finally:
            await engine.dispose()

    def run(token):
        return asyncio.run(fetch(token))

    return run
