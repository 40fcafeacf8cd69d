"""Record validation at the import boundary"""

from quotesync.validation.validator import QuoteValidator, parse_quotes_json, validate_records

__all__ = ["QuoteValidator", "parse_quotes_json", "validate_records"]
