"""
Database models for the short links service.

Note: fallback links are never stored here. They live in memory only,
see shortlinks_app.fallback.
"""

from .short_link import ShortLink

__all__ = ["ShortLink"]
