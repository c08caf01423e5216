"""
HTTP tests: redirect route, default route, health check and startup.
"""
import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlinks_app.accounting.tracker import AccountTracker
from shortlinks_app.cache.strategies import NullCache
from shortlinks_app.dependencies import get_resolver
from shortlinks_app.exceptions import StoreError, StoreUnavailableError
from shortlinks_app.fallback.loader import FallbackSet
from shortlinks_app.services.resolver import LinkResolver


class FailingStore:
    async def lookup_active(self, token):
        raise StoreError("connection reset by peer")

    async def increment_click_count(self, token):
        raise StoreError("connection reset by peer")


class TestRedirect:
    """Test GET /{token}"""

    def test_redirects_primary_link_and_counts_click(self, settings, seed_links, click_count):
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 5})

        with TestClient(create_app(settings)) as client:
            response = client.get("/abc", follow_redirects=False)

        # Leaving the client runs shutdown, which flushes pending increments
        assert response.status_code == 308
        assert response.headers["location"] == "https://x.test"
        assert click_count("abc") == 6

    def test_redirects_fallback_link(self, settings, links_csv):
        links_csv.write_text("promo,https://example.com/promo\n")

        with TestClient(create_app(settings)) as client:
            response = client.get("/promo", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == "https://example.com/promo"

    def test_unknown_token_is_404(self, settings):
        with TestClient(create_app(settings)) as client:
            response = client.get("/missing", follow_redirects=False)

        assert response.status_code == 404
        assert response.text == "Short link not found"

    def test_inactive_link_is_404(self, settings, seed_links):
        seed_links({"token": "old", "long_url": "https://old.test", "is_active": False})

        with TestClient(create_app(settings)) as client:
            response = client.get("/old", follow_redirects=False)

        assert response.status_code == 404

    def test_inactive_link_falls_through_to_csv(self, settings, seed_links, links_csv, click_count):
        """Test that a deactivated database row doesn't shadow the CSV link"""
        seed_links({"token": "promo", "long_url": "https://retired.test", "is_active": False, "click_count": 7})
        links_csv.write_text("promo,https://example.com/promo\n")

        with TestClient(create_app(settings)) as client:
            response = client.get("/promo", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == "https://example.com/promo"
        assert click_count("promo") == 7

    def test_repeated_redirects_count_every_click(self, settings, seed_links, click_count):
        """Test that cache hits are still counted"""
        seed_links({"token": "abc", "long_url": "https://x.test", "click_count": 0})

        with TestClient(create_app(settings)) as client:
            for _ in range(3):
                assert client.get("/abc", follow_redirects=False).status_code == 308

        assert click_count("abc") == 3

    def test_store_error_is_500(self, settings):
        app = create_app(settings)
        store = FailingStore()
        resolver = LinkResolver(store=store, fallback=FallbackSet(), tracker=AccountTracker(store))
        app.dependency_overrides[get_resolver] = lambda: resolver

        with TestClient(app) as client:
            response = client.get("/abc", follow_redirects=False)

        assert response.status_code == 500
        assert response.text == "Internal server error"


class TestOtherRoutes:
    """Test routes that never touch the resolver"""

    def test_root_redirects_to_default(self, settings):
        settings.default_redirect_url = "https://home.example.com"

        with TestClient(create_app(settings)) as client:
            response = client.get("/", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == "https://home.example.com"

    def test_health_check(self, settings):
        with TestClient(create_app(settings)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"


class TestStartup:
    """Test lifespan wiring"""

    def test_unreachable_database_is_fatal(self, settings, tmp_path):
        settings.database_url = f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'shortlinks.db'}"

        with pytest.raises(StoreUnavailableError):
            with TestClient(create_app(settings)):
                pass

    def test_missing_csv_is_not_fatal(self, settings):
        app = create_app(settings)

        with TestClient(app):
            assert len(app.state.resolver.fallback) == 0

    def test_disabled_cache(self, settings, seed_links):
        settings.cache_ttl = 0
        seed_links({"token": "abc", "long_url": "https://x.test"})

        app = create_app(settings)

        with TestClient(app) as client:
            assert client.get("/abc", follow_redirects=False).status_code == 308
            assert isinstance(app.state.cache, NullCache)
