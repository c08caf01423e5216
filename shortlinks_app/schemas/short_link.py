from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# Placeholder identity for records that never existed in the primary store
NIL_UUID = UUID(int=0)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class LinkSource(str, Enum):
    """Where a resolved link came from"""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class LinkRecord(BaseModel):
    """
    Immutable snapshot of a short link.

    This is what the resolver hands around and what the cache stores.
    - from_attributes=True reads straight from the SQLAlchemy ShortLink row
    - frozen=True so a cached snapshot can be shared between requests
    """
    id: UUID
    token: str = Field(..., min_length=1)
    long_url: str
    created_at: datetime
    click_count: int = 0
    is_active: bool = True
    source: LinkSource = LinkSource.PRIMARY

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @classmethod
    def from_fallback(cls, token: str, long_url: str) -> "LinkRecord":
        """Synthesize an inert record for a fallback hit (never persisted, never counted)."""
        return cls(
            id=NIL_UUID,
            token=token,
            long_url=long_url,
            created_at=EPOCH,
            click_count=0,
            is_active=True,
            source=LinkSource.FALLBACK,
        )

    @property
    def is_countable(self) -> bool:
        """Only primary-store links have a click counter to bump."""
        return self.source == LinkSource.PRIMARY
