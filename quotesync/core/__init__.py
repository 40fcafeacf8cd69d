"""Core data models and configuration"""

from quotesync.core.models import (
    ImportReport,
    MergePolicy,
    Quote,
    QuoteConflict,
    QuoteSide,
    ReconciliationResult,
    SyncReport,
    now_ms,
)
from quotesync.core.exceptions import QuoteImportError, QuoteValidationError
from quotesync.core.config import settings

__all__ = [
    "ImportReport",
    "MergePolicy",
    "Quote",
    "QuoteConflict",
    "QuoteSide",
    "ReconciliationResult",
    "SyncReport",
    "now_ms",
    "QuoteImportError",
    "QuoteValidationError",
    "settings",
]
