"""User actions over one quoting session: imports, commit, export, email."""
from typing import List, Optional, Tuple, Union

from quote_builder.cart import WorkingQuote
from quote_builder.catalog import CatalogManager, CustomerDirectory
from quote_builder.csv_import import parse_csv
from quote_builder.exceptions import EmptyQuoteError, MissingRecipientError
from quote_builder.ledger import QuoteLedger
from quote_builder.logging_conf import log_action, log_catalog_imported, log_pdf_generated
from quote_builder.pdf import build_quote_document, render_quote_pdf
from quote_builder.reporting import totals_by_date
from quote_builder.schemas import DateTotal, EmailOutcome, LineItem, Quote


class QuoteSession:
    """Catalog, customers, working quote and ledger for a single user."""

    def __init__(
        self,
        ledger: QuoteLedger,
        catalog: Optional[CatalogManager] = None,
        customers: Optional[CustomerDirectory] = None,
        working: Optional[WorkingQuote] = None
    ):
        self.ledger = ledger
        self.catalog = catalog if catalog is not None else CatalogManager()
        self.customers = customers if customers is not None else CustomerDirectory()
        self.working = working if working is not None else WorkingQuote()

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def import_items(self, data: Union[str, bytes], trace_id: Optional[str] = None) -> int:
        """Replace the catalog from CSV; the old catalog survives any error."""
        with log_action("import_items", trace_id):
            rows = parse_csv(data)
            count = self.catalog.replace_catalog(rows)
        log_catalog_imported("items", count, trace_id)
        return count

    def import_customers(self, data: Union[str, bytes], trace_id: Optional[str] = None) -> int:
        """Replace the session customer list from CSV."""
        with log_action("import_customers", trace_id):
            rows = parse_csv(data)
            count = self.customers.replace_customers(rows)
        log_catalog_imported("customers", count, trace_id)
        return count

    # -------------------------------------------------------------------------
    # Working quote
    # -------------------------------------------------------------------------

    def add_to_quote(self, sku: str) -> LineItem:
        return self.working.add_item(self.catalog.require(sku))

    def load_quote(self, quote_id: int):
        """Copy a committed quote into the working quote for editing."""
        self.working.load(self.ledger.load(quote_id))

    def commit(self, trace_id: Optional[str] = None) -> Optional[Quote]:
        """Record the working quote; ``None`` when it is empty."""
        with log_action("commit", trace_id, line_count=len(self.working)):
            return self.ledger.commit(self.working, trace_id=trace_id)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def download_pdf(self, trace_id: Optional[str] = None) -> Optional[Tuple[Quote, bytes]]:
        """Commit the working quote and render it as a PDF.

        Returns ``None`` and records nothing when the quote is empty.
        """
        try:
            document = build_quote_document(
                self.working.line_items,
                self.working.total(),
                customer_name=self.working.customer_name
            )
        except EmptyQuoteError:
            return None

        with log_action("download_pdf", trace_id, line_count=len(document.lines)):
            quote = self.ledger.commit(self.working, trace_id=trace_id)
            document.quote_id = quote.id
            document.quote_date = quote.created_at
            pdf_bytes = render_quote_pdf(document)

        log_pdf_generated(quote.id, len(pdf_bytes), trace_id)
        return quote, pdf_bytes

    def send_email(self, trace_id: Optional[str] = None) -> Optional[EmailOutcome]:
        """Record the quote for emailing.

        No mail transport is wired in: the quote is committed and the outcome
        reports ``delivered=False``. Raises ``MissingRecipientError`` without
        an email address; returns ``None`` for an empty quote.
        """
        recipient = self.working.customer_email
        if not recipient:
            raise MissingRecipientError("Please enter an email address.")
        if self.working.is_empty:
            return None

        with log_action("send_email", trace_id, line_count=len(self.working)):
            quote = self.ledger.commit(self.working, trace_id=trace_id)

        return EmailOutcome(
            quote_id=quote.id,
            recipient=recipient,
            delivered=False,
            message=(
                f"Quote {quote.id} saved to history. Email delivery is not configured; "
                f"nothing was sent to {recipient}."
            )
        )

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def totals_by_date(self, sort: bool = False) -> List[DateTotal]:
        return totals_by_date(self.ledger.list(), sort=sort)
