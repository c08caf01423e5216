"""
Primary link store module.

This module implements the Strategy Pattern for the link database.
The resolver depends on LinkStoreStrategy only.
"""

from .strategies import LinkStoreStrategy, SQLAlchemyLinkStore

__all__ = [
    "LinkStoreStrategy",
    "SQLAlchemyLinkStore",
]
