"""Quote book: the user-facing quote operations"""

import asyncio
import random
from typing import Optional

from loguru import logger

from quotesync.core.exceptions import QuoteValidationError
from quotesync.core.models import ImportReport, MergePolicy, Quote, now_ms
from quotesync.reconciliation.reconciler import QuoteReconciler
from quotesync.storage.quote_repository import QuoteRepository, dump_quotes
from quotesync.validation.validator import QuoteValidator, parse_quotes_json

ALL_CATEGORIES = "all"


class QuoteBook:
    """
    Add, pick, filter, import and export quotes.

    Holds the per-process session state: the last quote shown lives here
    and is never persisted, while the selected category filter is a stored
    preference that survives restarts.

    Writes merge through the reconciler so a collection never holds two
    quotes with the same text and category. When a lock is shared with the
    sync service, writes wait for a running sync to finish.
    """

    def __init__(
        self,
        repository: QuoteRepository,
        reconciler: Optional[QuoteReconciler] = None,
        lock: Optional[asyncio.Lock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repository = repository
        self.reconciler = reconciler or QuoteReconciler()
        self.lock = lock or asyncio.Lock()
        self.rng = rng or random.Random()
        self.validator = QuoteValidator()
        self.last_viewed: Optional[Quote] = None

    async def list_quotes(self) -> list[Quote]:
        return await self.repository.load_quotes()

    async def add_quote(self, text: str, category: str) -> Quote:
        """
        Add a quote typed in by the user.

        Raises:
            QuoteValidationError: text or category is blank
        """
        text = (text or "").strip()
        category = (category or "").strip()
        if not text or not category:
            raise QuoteValidationError("Please fill in both the quote text and its category")

        quote = Quote.create(text, category)
        await self._merge_in([quote])
        logger.info("Added quote in {category}", category=category)
        return quote

    async def import_quotes(self, payload: str | bytes) -> ImportReport:
        """
        Import a JSON array of quotes.

        Imported entries are stamped with the import time and win over
        existing quotes with the same text and category. Malformed entries
        are skipped and counted; ``imported`` counts distinct quotes.

        Raises:
            QuoteImportError: payload is not a JSON array
        """
        records = parse_quotes_json(payload)
        stamp = now_ms()
        valid, rejected = self.validator.validate(records, now=stamp)
        imported = [q.model_copy(update={"updated_at": stamp}) for q in valid]

        if imported:
            await self._merge_in(imported)

        report = ImportReport(
            total=len(records),
            imported=len({q.key for q in imported}),
            rejected=len(rejected),
        )
        logger.info(
            "Imported {imported}/{total} quotes ({rejected} rejected)",
            imported=report.imported,
            total=report.total,
            rejected=report.rejected,
        )
        return report

    async def export_quotes(self) -> str:
        """Pretty-printed JSON array of every quote"""
        quotes = await self.repository.load_quotes()
        return dump_quotes(quotes, indent=2)

    async def categories(self) -> list[str]:
        """Distinct categories in the order they first appear"""
        quotes = await self.repository.load_quotes()
        return list(dict.fromkeys(q.category for q in quotes))

    async def select_category(self, category: Optional[str]) -> None:
        """Remember the category filter; None or "all" clears it"""
        if category is None or category == ALL_CATEGORIES:
            await self.repository.set_selected_category(None)
        else:
            await self.repository.set_selected_category(category)

    async def selected_category(self) -> str:
        return await self.repository.get_selected_category() or ALL_CATEGORIES

    async def random_quote(self, category: Optional[str] = None) -> Optional[Quote]:
        """
        Pick a random quote and remember it as the last viewed one.

        Args:
            category: Filter to apply; defaults to the stored selection.
                "all" picks from every quote.

        Returns:
            The quote, or None when the category has no quotes
        """
        if category is None:
            category = await self.selected_category()

        quotes = await self.repository.load_quotes()
        if category != ALL_CATEGORIES:
            quotes = [q for q in quotes if q.category == category]

        if not quotes:
            logger.debug("No quotes in category {category}", category=category)
            return None

        quote = self.rng.choice(quotes)
        self.last_viewed = quote
        return quote

    async def _merge_in(self, incoming: list[Quote]) -> None:
        async with self.lock:
            existing = await self.repository.load_quotes()
            result = self.reconciler.reconcile(existing, incoming, MergePolicy.REMOTE_WINS)
            await self.repository.save_quotes(result.merged)
