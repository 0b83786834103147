"""Errors raised by quote builder operations.

Every error is recovered at the user action that triggered it; the HTTP
layer maps them onto status codes in ``quote_builder.main``.
"""
from typing import Iterable, Optional


class QuoteBuilderError(ValueError):
    """Base class for all quote builder errors."""


class ImportValidationError(QuoteBuilderError):
    """A CSV import was rejected; the previous catalog or customer list is kept."""

    def __init__(self, message: str, missing_columns: Optional[Iterable[str]] = None, row: Optional[int] = None):
        super().__init__(message)
        self.missing_columns = list(missing_columns or [])
        self.row = row


class MissingRecipientError(QuoteBuilderError):
    """Email export attempted without a customer email address."""


class EmptyQuoteError(QuoteBuilderError):
    """Export or commit attempted with zero line items."""


class LineItemNotFoundError(QuoteBuilderError):
    """No line item with the given sku in the working quote."""


class CatalogItemNotFoundError(QuoteBuilderError):
    """No catalog item with the given sku."""


class QuoteNotFoundError(QuoteBuilderError):
    """No committed quote with the given id."""


class PDFGenerationError(RuntimeError):
    """ReportLab failed to produce the quote document."""


class StoreUnavailableError(RuntimeError):
    """The durable store could not be read or written."""
