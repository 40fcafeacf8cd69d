"""Remote quote sources used by the sync service"""

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional, Sequence

import httpx
from loguru import logger

from quotesync.core.config import settings
from quotesync.core.models import Quote
from quotesync.storage.quote_repository import dump_quotes
from quotesync.storage.sqlite_store import SQLiteKeyValueStore
from quotesync.validation.validator import QuoteValidator

SERVER_QUOTES_KEY = "server_quotes"


class QuoteSource(ABC):
    """
    Somewhere the local collection is reconciled against.

    Implementations never raise on transport problems: an unreachable
    source fetches as an empty list and reports a failed push.
    """

    name: str = "remote"
    _last_fetch_ok: bool = True

    @abstractmethod
    async def fetch_quotes(self) -> list[Quote]:
        """Return the remote collection, or [] when unavailable"""

    @abstractmethod
    async def push_quotes(self, quotes: Sequence[Quote]) -> bool:
        """Send the merged collection back. Returns True on success."""

    @property
    def last_fetch_ok(self) -> bool:
        """Whether the most recent fetch reached the source"""
        return self._last_fetch_ok


class HttpQuoteSource(QuoteSource):
    """
    Quote collection served over HTTP.

    GET returns a JSON array. Entries in quote shape are validated as is;
    entries shaped like mock blog posts (``title``/``body``) become quotes
    with ``text=title`` in the default category.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        default_category: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.default_category = default_category or settings.REMOTE_DEFAULT_CATEGORY
        self.transport = transport
        self.validator = QuoteValidator()
        self._last_fetch_ok = True

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def fetch_quotes(self) -> list[Quote]:
        try:
            async with self._client() as client:
                response = await client.get(self.base_url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            self._last_fetch_ok = False
            logger.warning(f"Remote fetch failed ({self.base_url}): {e}")
            return []
        except ValueError as e:
            self._last_fetch_ok = False
            logger.warning(f"Remote returned invalid JSON ({self.base_url}): {e}")
            return []

        if not isinstance(payload, list):
            self._last_fetch_ok = False
            logger.warning(
                "Remote payload is not a JSON array ({kind}), treating as empty",
                kind=type(payload).__name__,
            )
            return []

        self._last_fetch_ok = True
        quotes, _ = self.validator.validate([self._to_record(item) for item in payload])
        logger.info("Fetched {n} quotes from {url}", n=len(quotes), url=self.base_url)
        return quotes

    async def push_quotes(self, quotes: Sequence[Quote]) -> bool:
        try:
            async with self._client() as client:
                response = await client.post(
                    self.base_url,
                    json=[q.to_record() for q in quotes],
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Remote push failed ({self.base_url}): {e}")
            return False

        logger.info("Pushed {n} quotes to {url}", n=len(quotes), url=self.base_url)
        return True

    def _to_record(self, item: Any) -> Any:
        # Posts carry no timestamp; a fixed one keeps repeated fetches identical
        if isinstance(item, Mapping) and "text" not in item and "title" in item:
            return {"text": item["title"], "category": self.default_category, "updatedAt": 0}
        return item


class SimulatedServerSource(QuoteSource):
    """
    A stand-in server kept under its own key in the local key-value store.

    Fetch reads the stored server copy; push overwrites it with the merged
    collection, so after a sync both copies agree.
    """

    name = "simulated"

    def __init__(self, kv: SQLiteKeyValueStore, key: str = SERVER_QUOTES_KEY) -> None:
        self.kv = kv
        self.key = key
        self.validator = QuoteValidator()
        self._last_fetch_ok = True

    async def fetch_quotes(self) -> list[Quote]:
        raw = await self.kv.get(self.key)
        if raw is None:
            self._last_fetch_ok = True
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            self._last_fetch_ok = False
            logger.warning(f"Simulated server data is corrupt, treating as empty: {e}")
            return []

        if not isinstance(records, list):
            self._last_fetch_ok = False
            logger.warning("Simulated server data is not a JSON array, treating as empty")
            return []

        self._last_fetch_ok = True
        quotes, _ = self.validator.validate(records)
        return quotes

    async def push_quotes(self, quotes: Sequence[Quote]) -> bool:
        await self.kv.set(self.key, dump_quotes(quotes))
        return True


def build_source(kv: SQLiteKeyValueStore) -> QuoteSource:
    """Create the source selected by ``settings.REMOTE_MODE``"""
    if settings.REMOTE_MODE == "http":
        return HttpQuoteSource(settings.REMOTE_URL, timeout=settings.REMOTE_TIMEOUT)
    if settings.REMOTE_MODE != "simulated":
        logger.warning(
            "Unknown REMOTE_MODE {mode!r}, falling back to simulated",
            mode=settings.REMOTE_MODE,
        )
    return SimulatedServerSource(kv)
