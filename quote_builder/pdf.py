"""PDF generation using ReportLab."""
import io
import os
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Any, Sequence
from xml.sax.saxutils import escape
from reportlab.lib.pagesizes import letter
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_CENTER, TA_RIGHT

from quote_builder.cart import format_money
from quote_builder.config import settings
from quote_builder.exceptions import EmptyQuoteError, PDFGenerationError
from quote_builder.schemas import LineItem


# =============================================================================
# VIEWMODEL
# =============================================================================

TABLE_HEADER = ["SKU", "Description", "Qty", "Unit Price", "Total"]


@dataclass
class LineDoc:
    sku: str
    description: str
    qty: int
    unit_price: str
    line_total: str


@dataclass
class QuoteDocument:
    title: str
    customer_label: str
    lines: List[LineDoc] = field(default_factory=list)
    grand_total: str = ""
    quote_id: Optional[int] = None
    quote_date: Optional[datetime] = None


def build_quote_document(
    line_items: Sequence[LineItem],
    total: Decimal,
    customer_name: Optional[str] = None,
    title: Optional[str] = None,
    quote_id: Optional[int] = None,
    quote_date: Optional[datetime] = None,
    currency_symbol: Optional[str] = None
) -> QuoteDocument:
    """Derive the printable document from quote line items.

    Raises ``EmptyQuoteError`` when there are no line items.
    """
    if not line_items:
        raise EmptyQuoteError("Cannot render a quote with no line items")

    symbol = settings.currency_symbol if currency_symbol is None else currency_symbol
    lines = [
        LineDoc(
            sku=item.sku,
            description=item.description,
            qty=item.quantity,
            unit_price=format_money(item.unit_price, symbol),
            line_total=format_money(item.line_total, symbol)
        )
        for item in line_items
    ]
    return QuoteDocument(
        title=title or settings.quote_title,
        customer_label=f"Customer: {customer_name or 'N/A'}",
        lines=lines,
        grand_total=format_money(total, symbol),
        quote_id=quote_id,
        quote_date=quote_date
    )


class QuotePDFGenerator:
    """Render a ``QuoteDocument`` with ReportLab."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles for the quote."""
        self.title_style = ParagraphStyle(
            'QuoteTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            textColor=colors.black,
            alignment=TA_LEFT,
            spaceAfter=10
        )

        self.normal_style = ParagraphStyle(
            'NormalText',
            parent=self.styles['Normal'],
            fontSize=12,
            spaceAfter=6
        )

        self.table_header_style = ParagraphStyle(
            'TableHeader',
            parent=self.styles['Normal'],
            fontSize=10,
            textColor=colors.black,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        )

        self.total_style = ParagraphStyle(
            'GrandTotal',
            parent=self.styles['Normal'],
            fontSize=12,
            alignment=TA_RIGHT,
            fontName='Helvetica-Bold',
            spaceBefore=10
        )

    def _create_header(self, doc: QuoteDocument) -> list:
        """Create the title and customer line."""
        elements = []
        elements.append(Paragraph(escape(doc.title), self.title_style))
        if doc.quote_id is not None:
            meta = f"Quote #{doc.quote_id}"
            if doc.quote_date is not None:
                meta += f" &nbsp; {doc.quote_date.strftime('%Y-%m-%d')}"
            elements.append(Paragraph(meta, self.normal_style))
        elements.append(Paragraph(escape(doc.customer_label), self.normal_style))
        elements.append(Spacer(1, 10))
        return elements

    def _create_line_items_table(self, doc: QuoteDocument) -> list:
        """Create the line items table."""
        elements = []
        header = [Paragraph(label, self.table_header_style) for label in TABLE_HEADER]

        data: List[List[Any]] = [header]
        for line in doc.lines:
            data.append([
                line.sku,
                Paragraph(escape(line.description), self.styles["Normal"]),
                str(line.qty),
                line.unit_price,
                line.line_total
            ])

        col_widths = [1.1*inch, 2.9*inch, 0.6*inch, 1.0*inch, 1.0*inch]
        t = Table(data, colWidths=col_widths, repeatRows=1)
        t.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.whitesmoke),
            ('GRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 1), (-1, -1), 'TOP'),
        ]))
        elements.append(t)
        return elements

    def _create_total_line(self, doc: QuoteDocument) -> list:
        return [Paragraph(f"Total: {doc.grand_total}", self.total_style)]

    def _create_page_template(self):
        """Create a page callback drawing the footer."""
        def footer(canvas, doc):
            canvas.saveState()
            canvas.setFont('Helvetica', 8)
            canvas.setFillColor(colors.grey)
            canvas.drawString(inch, 0.5*inch, f"Generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
            canvas.drawRightString(doc.width + inch, 0.5*inch, f"Page {doc.page}")
            canvas.restoreState()

        return footer

    def build_story(self, doc: QuoteDocument) -> list:
        story = []
        story.extend(self._create_header(doc))
        story.extend(self._create_line_items_table(doc))
        story.extend(self._create_total_line(doc))
        return story

    def generate(self, doc: QuoteDocument) -> bytes:
        """Render ``doc`` and return the PDF bytes.

        Raises ``PDFGenerationError`` if ReportLab fails.
        """
        buffer = io.BytesIO()
        try:
            template = SimpleDocTemplate(
                buffer,
                pagesize=letter,
                rightMargin=inch,
                leftMargin=inch,
                topMargin=inch,
                bottomMargin=inch,
                title=doc.title
            )
            footer = self._create_page_template()
            template.build(self.build_story(doc), onFirstPage=footer, onLaterPages=footer)
        except Exception as e:
            raise PDFGenerationError(f"Failed to generate PDF: {str(e)}") from e
        return buffer.getvalue()

    def write(self, doc: QuoteDocument, output_path: str) -> str:
        """Render ``doc`` to ``output_path`` and return the path."""
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_path, "wb") as fh:
            fh.write(self.generate(doc))
        return output_path


def render_quote_pdf(doc: QuoteDocument) -> bytes:
    """Render a quote document to PDF bytes."""
    generator = QuotePDFGenerator()
    return generator.generate(doc)
