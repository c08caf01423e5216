"""
Click accounting module.
Fire-and-forget click_count increments for primary-store links.
"""

from .tracker import AccountTracker

__all__ = ["AccountTracker"]
