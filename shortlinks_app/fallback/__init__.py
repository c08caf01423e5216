"""
Fallback links module.
Static token -> URL mappings loaded from CSV at startup.
"""

from .loader import FallbackSet, load_fallback_links

__all__ = [
    "FallbackSet",
    "load_fallback_links",
]
