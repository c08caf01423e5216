from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse

from shortlinks_app.accounting.tracker import AccountTracker
from shortlinks_app.api.v1 import redirect
from shortlinks_app.cache.factory import CacheFactory
from shortlinks_app.config import Settings, get_settings
from shortlinks_app.database.connection import create_engine_from_settings, init_db, mask_database_url
from shortlinks_app.dependencies import get_app_settings
from shortlinks_app.fallback.loader import load_fallback_links
from shortlinks_app.logging_config import setup_logging
from shortlinks_app.middleware.logging import LoggingMiddleware
from shortlinks_app.services.resolver import LinkResolver
from shortlinks_app.storage.strategies import SQLAlchemyLinkStore

logger = logging.getLogger("shortlinks_app.main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Wire the resolver on startup, tear it down on shutdown.

    Startup order: database (fatal if unreachable), CSV links, cache,
    click tracker, resolver. Shutdown order: flush pending clicks,
    close cache, dispose engine.
    """
    settings: Settings = app.state.settings

    setup_logging(level=settings.log_level, log_file=settings.log_file, json_format=settings.log_json)
    logger.info("Starting short link server...")
    logger.info(f"Database URL: {mask_database_url(settings.database_url)}")
    logger.info(f"Default redirect: {settings.default_redirect_url}")
    logger.info(f"Bind address: {settings.bind_address}")

    # ---- Startup ----
    engine = create_engine_from_settings(settings)
    store = SQLAlchemyLinkStore(engine)
    try:
        logger.info("Attempting to connect to database...")
        await store.ping()
        if settings.create_tables:
            await init_db(engine)
        logger.info("Successfully connected to database")
    except Exception:
        logger.error(f"Make sure the database is running and accessible at: {mask_database_url(settings.database_url)}")
        await engine.dispose()
        raise

    fallback = load_fallback_links(settings.fallback_links_path)
    logger.info(f"Loaded {len(fallback)} links from CSV file into memory")

    cache = CacheFactory.from_settings(settings)
    tracker = AccountTracker(store)

    app.state.engine = engine
    app.state.cache = cache
    app.state.tracker = tracker
    app.state.resolver = LinkResolver(store=store, fallback=fallback, tracker=tracker, cache=cache)

    yield

    # ---- Shutdown ----
    await tracker.drain(timeout=settings.accounting_drain_timeout)
    await cache.close()
    await engine.dispose()
    logger.info("Short link server stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        settings: Explicit settings (tests); defaults to environment/.env

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Short link redirect server",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # Registered before the router so they are not captured by /{token}
    @app.get("/")
    def root_redirect(app_settings: Settings = Depends(get_app_settings)):
        """Unconditional redirect to the default destination"""
        logger.info(f"Root redirect to: {app_settings.default_redirect_url}")
        return RedirectResponse(url=app_settings.default_redirect_url, status_code=308)

    @app.get("/health", response_class=PlainTextResponse)
    def health_check():
        """Liveness check endpoint, never touches the database"""
        return "OK"

    ######## Include routers
    app.include_router(redirect.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host, port = get_settings().host_and_port
    uvicorn.run("main:app", host=host, port=port)
