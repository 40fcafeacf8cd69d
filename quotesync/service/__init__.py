"""User-facing quote operations"""

from quotesync.service.quote_book import ALL_CATEGORIES, QuoteBook

__all__ = ["ALL_CATEGORIES", "QuoteBook"]
