"""Shape validation for quote records arriving from storage, imports and remotes"""

import json
import math
from collections.abc import Mapping
from typing import Any, Optional

from loguru import logger

from quotesync.core.exceptions import QuoteImportError
from quotesync.core.models import Quote, now_ms


def parse_quotes_json(payload: str | bytes) -> list[Any]:
    """
    Decode an import payload.

    The payload must be a JSON array; its entries are not checked here,
    see ``validate_records``.

    Raises:
        QuoteImportError: payload is not valid JSON or not an array
    """
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise QuoteImportError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise QuoteImportError(
            f"Expected a JSON array of quotes, got {type(data).__name__}"
        )
    return data


class QuoteValidator:
    """
    Filter malformed records before they reach the reconciler.

    A record is kept when it is a mapping with non-blank string ``text`` and
    ``category``. Surrounding whitespace is stripped. A missing or
    non-numeric ``updatedAt`` is replaced by the validation time.
    """

    def __init__(self) -> None:
        self.records_checked = 0
        self.records_rejected = 0

    def validate(
        self,
        records: list[Any],
        now: Optional[int] = None,
    ) -> tuple[list[Quote], list[tuple[Any, str]]]:
        """
        Split records into valid quotes and rejected entries.

        Args:
            records: Raw decoded JSON entries
            now: Timestamp (epoch ms) for entries without ``updatedAt``

        Returns:
            (valid quotes, [(record, reason), ...])
        """
        stamp = now_ms() if now is None else now
        valid: list[Quote] = []
        rejected: list[tuple[Any, str]] = []

        for record in records:
            self.records_checked += 1
            reason = self._check_shape(record)
            if reason:
                self.records_rejected += 1
                rejected.append((record, reason))
                logger.warning(
                    "Rejected quote record: {reason} ({record})",
                    reason=reason,
                    record=str(record)[:80],
                )
                continue

            valid.append(
                Quote(
                    text=record["text"].strip(),
                    category=record["category"].strip(),
                    updated_at=self._timestamp(record, stamp),
                )
            )

        if rejected:
            logger.info(
                "Validated {total} records: {valid} valid, {rejected} rejected",
                total=len(records),
                valid=len(valid),
                rejected=len(rejected),
            )

        return valid, rejected

    def _check_shape(self, record: Any) -> Optional[str]:
        if not isinstance(record, Mapping):
            return f"not an object ({type(record).__name__})"

        for field in ("text", "category"):
            value = record.get(field)
            if value is None:
                return f"missing {field}"
            if not isinstance(value, str):
                return f"{field} is not a string"
            if not value.strip():
                return f"blank {field}"

        return None

    def _timestamp(self, record: Mapping, default: int) -> int:
        value = record.get("updatedAt", record.get("updated_at"))
        # bool is an int subclass; treat it as missing
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        if not math.isfinite(value) or value < 0:
            return default
        return int(value)


def validate_records(
    records: list[Any],
    now: Optional[int] = None,
) -> tuple[list[Quote], list[tuple[Any, str]]]:
    """Validate records with a throwaway validator"""
    return QuoteValidator().validate(records, now=now)
