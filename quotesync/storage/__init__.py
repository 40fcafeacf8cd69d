"""Local persistence"""

from quotesync.storage.quote_repository import QuoteRepository, dump_quotes
from quotesync.storage.sqlite_store import SQLiteKeyValueStore

__all__ = ["QuoteRepository", "SQLiteKeyValueStore", "dump_quotes"]
