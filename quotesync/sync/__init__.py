"""Remote sources and sync orchestration"""

from quotesync.sync.remote_source import (
    HttpQuoteSource,
    QuoteSource,
    SimulatedServerSource,
    build_source,
)
from quotesync.sync.sync_service import SyncService

__all__ = [
    "HttpQuoteSource",
    "QuoteSource",
    "SimulatedServerSource",
    "SyncService",
    "build_source",
]
