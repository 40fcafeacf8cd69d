"""Core data models for quote storage and reconciliation"""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current time as epoch milliseconds (the persisted timestamp unit)"""
    return int(time.time() * 1000)


class MergePolicy(str, Enum):
    """Tie-break rule used when local and remote disagree on a quote"""

    LATEST_TIMESTAMP = "latest-timestamp"
    REMOTE_WINS = "remote-wins"


class QuoteSide(str, Enum):
    """Which input collection a quote came from"""

    LOCAL = "local"
    REMOTE = "remote"


class Quote(BaseModel):
    """
    A text/category pair with an update timestamp.

    Identity is the exact ``(text, category)`` pair; there is no ID. Quotes
    are immutable, a merge replaces one quote with another rather than
    editing fields in place.

    Serialized with the ``updatedAt`` alias so the stored JSON matches the
    ``{text, category, updatedAt}`` layout:

        Quote.create("Stay hungry.", "Motivation").to_record()
        # {"text": "Stay hungry.", "category": "Motivation", "updatedAt": 1718000000000}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(min_length=1)
    category: str = Field(min_length=1)
    updated_at: int = Field(alias="updatedAt", ge=0)

    @classmethod
    def create(
        cls,
        text: str,
        category: str,
        updated_at: Optional[int] = None,
    ) -> "Quote":
        """Build a quote, stamping it with the current time when no timestamp is given"""
        return cls(
            text=text,
            category=category,
            updated_at=now_ms() if updated_at is None else updated_at,
        )

    @property
    def key(self) -> tuple[str, str]:
        """Identity key used for deduplication (case-sensitive)"""
        return (self.text, self.category)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted JSON object shape"""
        return self.model_dump(by_alias=True)


class QuoteConflict(BaseModel):
    """Two differing quotes sharing an identity key, and which one was kept"""

    local: Quote
    remote: Quote
    winner: QuoteSide

    @property
    def kept(self) -> Quote:
        return self.remote if self.winner == QuoteSide.REMOTE else self.local

    @property
    def discarded(self) -> Quote:
        return self.local if self.winner == QuoteSide.REMOTE else self.remote


class ReconciliationResult(BaseModel):
    """Output of a merge: the deduplicated collection and the conflict report"""

    merged: list[Quote] = Field(default_factory=list)
    conflicts: list[QuoteConflict] = Field(default_factory=list)
    policy: MergePolicy = MergePolicy.LATEST_TIMESTAMP


class SyncReport(BaseModel):
    """Summary of one sync cycle"""

    synced_at: datetime = Field(default_factory=datetime.now)
    policy: MergePolicy = MergePolicy.LATEST_TIMESTAMP
    local_count: int = 0
    remote_count: int = 0
    merged_count: int = 0
    conflicts: list[QuoteConflict] = Field(default_factory=list)
    remote_available: bool = True
    pushed: bool = False
    skipped: bool = False


class ImportReport(BaseModel):
    """Summary of a JSON import"""

    total: int
    imported: int
    rejected: int
