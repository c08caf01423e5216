"""
Exceptions raised by the short link resolution core.

The HTTP layer maps them to responses:
- LinkNotFoundError -> 404
- StoreError        -> 500

Click accounting failures never surface as exceptions; the tracker
logs and discards them.
"""


class ShortLinkError(Exception):
    """Generic base class for short link exceptions."""

    pass


class LinkNotFoundError(ShortLinkError):
    """Raised when a token is absent from both the primary store and the fallback set."""

    def __init__(self, token: str):
        super().__init__(f"Short link not found: {token}")
        self.token = token


class StoreError(ShortLinkError):
    """Raised when the primary store cannot be queried (connectivity, timeouts, bad SQL)."""

    pass


class StoreUnavailableError(StoreError):
    """Raised at startup when the primary store is unreachable. Fatal for the process."""

    pass
