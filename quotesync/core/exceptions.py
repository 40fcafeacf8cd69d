"""Errors raised at the user-input boundary"""


class QuoteValidationError(ValueError):
    """A quote submitted by the user is missing its text or category"""


class QuoteImportError(ValueError):
    """An import payload is not a JSON array of quote records"""
