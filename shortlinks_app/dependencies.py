"""
FastAPI dependencies for dependency injection.

The resolver and its collaborators are built once by the application
lifespan and kept on app.state; routes receive them through Depends.

Pattern: Dependency Injection
- No process-wide singletons
- Easy to test (override get_resolver, or build the app with fakes)
"""

from fastapi import Request

from shortlinks_app.config import Settings
from shortlinks_app.services.resolver import LinkResolver


def get_resolver(request: Request) -> LinkResolver:
    """Resolver shared by all requests of this app."""
    return request.app.state.resolver


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings
