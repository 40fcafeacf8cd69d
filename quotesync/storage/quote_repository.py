"""Quote persistence on top of the key-value store"""

import json
from typing import Optional, Sequence

from loguru import logger

from quotesync.core.config import settings
from quotesync.core.models import Quote
from quotesync.reconciliation.reconciler import reconcile
from quotesync.storage.sqlite_store import SQLiteKeyValueStore
from quotesync.validation.validator import QuoteValidator

QUOTES_KEY = "quotes"
SELECTED_CATEGORY_KEY = "selected_category"


def dump_quotes(quotes: Sequence[Quote], indent: Optional[int] = None) -> str:
    """Serialize quotes to the persisted JSON array layout"""
    return json.dumps([q.to_record() for q in quotes], ensure_ascii=False, indent=indent)


class QuoteRepository:
    """
    Reads and writes the quote collection as one JSON array.

    The whole array is rewritten on every save; there is no append format
    and no schema version. Entries that fail validation on load are
    dropped and logged; duplicate keys collapse to one quote each.
    """

    def __init__(self, kv: SQLiteKeyValueStore) -> None:
        self.kv = kv
        self.validator = QuoteValidator()

    async def load_quotes(self) -> list[Quote]:
        _, quotes = await self._read()
        return quotes

    async def normalize(self) -> bool:
        """
        Rewrite the stored array in canonical form.

        Arrays written by older clients may hold duplicate keys, entries
        without ``updatedAt`` or malformed entries. Loading repairs them in
        memory only, so without a write-back legacy entries would get a
        fresh timestamp on every load. Run once at startup, before anything
        else touches the store.

        Returns True if the stored array was rewritten.
        """
        records, quotes = await self._read()
        if records is None or [q.to_record() for q in quotes] == records:
            return False

        await self.save_quotes(quotes)
        logger.info(
            "Normalized stored quotes: {before} entries -> {after}",
            before=len(records),
            after=len(quotes),
        )
        return True

    async def _read(self) -> tuple[Optional[list], list[Quote]]:
        """Raw stored records (None when absent or unreadable) and the clean quotes"""
        raw = await self.kv.get(QUOTES_KEY)
        if raw is None:
            return None, []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Stored quotes are not valid JSON, ignoring: {e}")
            return None, []

        if not isinstance(records, list):
            logger.error("Stored quotes are not a JSON array, ignoring")
            return None, []

        quotes, _ = self.validator.validate(records)
        if len({q.key for q in quotes}) != len(quotes):
            logger.warning("Stored quotes contain duplicate keys, deduplicating")
            quotes = reconcile(quotes, []).merged
        return records, quotes

    async def save_quotes(self, quotes: Sequence[Quote]) -> None:
        await self.kv.set(QUOTES_KEY, dump_quotes(quotes))
        logger.debug("Saved {n} quotes", n=len(quotes))

    async def get_selected_category(self) -> Optional[str]:
        return await self.kv.get(SELECTED_CATEGORY_KEY)

    async def set_selected_category(self, category: Optional[str]) -> None:
        """Persist the category filter; None clears it"""
        if category is None:
            await self.kv.delete(SELECTED_CATEGORY_KEY)
        else:
            await self.kv.set(SELECTED_CATEGORY_KEY, category)

    async def seed_defaults(self) -> bool:
        """
        Store the starter quotes when nothing has been saved yet.

        Returns True if the defaults were written.
        """
        if await self.kv.get(QUOTES_KEY) is not None:
            return False

        quotes = [Quote.create(text, category) for text, category in settings.DEFAULT_QUOTES]
        await self.save_quotes(quotes)
        logger.info("Seeded {n} default quotes", n=len(quotes))
        return True
