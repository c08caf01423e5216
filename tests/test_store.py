"""
Tests for the SQLAlchemy link store (primary store adapter).
"""
import asyncio

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from shortlinks_app.exceptions import StoreError, StoreUnavailableError
from shortlinks_app.schemas.short_link import LinkSource
from shortlinks_app.storage.strategies import SQLAlchemyLinkStore


class TestLookupActive:
    """Test active-link lookup"""

    def test_finds_active_link(self, seed_links, run_with_store):
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 5})

        record = run_with_store(lambda store: store.lookup_active("abc"))

        assert record is not None
        assert record.token == "abc"
        assert record.long_url == "https://x.test"
        assert record.click_count == 5
        assert record.is_active is True
        assert record.source == LinkSource.PRIMARY

    def test_inactive_link_is_invisible(self, seed_links, run_with_store):
        seed_links({"token": "old", "long_url": "https://old.test", "is_active": False})

        assert run_with_store(lambda store: store.lookup_active("old")) is None

    def test_unknown_token(self, run_with_store):
        assert run_with_store(lambda store: store.lookup_active("nonexistent")) is None

    def test_token_match_is_case_sensitive(self, seed_links, run_with_store):
        seed_links({"token": "abc", "long_url": "https://x.test"})

        assert run_with_store(lambda store: store.lookup_active("ABC")) is None


class TestIncrementClickCount:
    """Test atomic click increments"""

    def test_increments_by_one(self, seed_links, run_with_store, click_count):
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 5})

        run_with_store(lambda store: store.increment_click_count("abc"))

        assert click_count("abc") == 6

    def test_concurrent_increments_are_not_lost(self, seed_links, run_with_store, click_count):
        """Test that racing increments each land (UPDATE ... SET n = n + 1)"""
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 0})

        async def scenario(store):
            await asyncio.gather(*(store.increment_click_count("abc") for _ in range(10)))

        run_with_store(scenario)

        assert click_count("abc") == 10

    def test_unknown_token_is_a_no_op(self, run_with_store):
        """Test that incrementing a missing row neither fails nor creates it"""
        async def scenario(store):
            await store.increment_click_count("ghost")
            return await store.lookup_active("ghost")

        assert run_with_store(scenario) is None


class TestStoreErrors:
    """Test that driver failures surface as StoreError"""

    def test_lookup_failure_raises_store_error(self, db_url):
        """Test that a missing table (broken store) is a StoreError, not NotFound"""
        async def scenario():
            engine = create_async_engine(db_url)
            try:
                await SQLAlchemyLinkStore(engine).lookup_active("abc")
            finally:
                await engine.dispose()

        with pytest.raises(StoreError):
            asyncio.run(scenario())

    def test_unreadable_row_raises_store_error(self, seed_links, run_with_store):
        """Test that a row with a NULL created_at is a StoreError, not a crash"""
        seed_links({"token": "abc", "long_url": "https://x.test", "created_at": None})

        with pytest.raises(StoreError):
            run_with_store(lambda store: store.lookup_active("abc"))

    def test_increment_failure_raises_store_error(self, db_url):
        async def scenario():
            engine = create_async_engine(db_url)
            try:
                await SQLAlchemyLinkStore(engine).increment_click_count("abc")
            finally:
                await engine.dispose()

        with pytest.raises(StoreError):
            asyncio.run(scenario())

    def test_ping_unreachable_database(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'shortlinks.db'}"

        async def scenario():
            engine = create_async_engine(url)
            try:
                await SQLAlchemyLinkStore(engine).ping()
            finally:
                await engine.dispose()

        with pytest.raises(StoreUnavailableError):
            asyncio.run(scenario())

    def test_ping_reachable_database(self, run_with_store):
        run_with_store(lambda store: store.ping())
