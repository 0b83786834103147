"""Unit tests for PDF generation functionality."""
import pytest
from unittest.mock import patch
import os
from decimal import Decimal
from datetime import datetime, timezone

from quote_builder.exceptions import EmptyQuoteError, PDFGenerationError
from quote_builder.pdf import TABLE_HEADER, QuotePDFGenerator, build_quote_document, render_quote_pdf
from quote_builder.schemas import LineItem


def line_items():
    return [
        LineItem(sku="123456", description="Product A", unit_price=Decimal("10"), quantity=2),
        LineItem(sku="234567", description="Product B", unit_price=Decimal("20"), quantity=1),
    ]


@pytest.fixture
def document():
    """Quote document for two seed products."""
    return build_quote_document(line_items(), Decimal("40"), customer_name="Acme Corp")


class TestBuildQuoteDocument:
    """Test the printable document derived from line items."""

    def test_single_line(self):
        """One line of Product A at quantity 1 shows $10.00 and Customer: N/A."""
        items = [LineItem(sku="123456", description="Product A", unit_price=Decimal("10"), quantity=1)]

        doc = build_quote_document(items, Decimal("10"))

        assert doc.title == "GVWS Sales Quote"
        assert doc.customer_label == "Customer: N/A"
        assert len(doc.lines) == 1
        line = doc.lines[0]
        assert (line.sku, line.description, line.qty) == ("123456", "Product A", 1)
        assert line.unit_price == "$10.00"
        assert line.line_total == "$10.00"
        assert doc.grand_total == "$10.00"

    def test_lines_follow_quote_order(self, document):
        assert [line.sku for line in document.lines] == ["123456", "234567"]
        assert [line.line_total for line in document.lines] == ["$20.00", "$20.00"]
        assert document.customer_label == "Customer: Acme Corp"
        assert document.grand_total == "$40.00"

    def test_empty_quote_raises(self):
        """No document is built for a quote without lines."""
        with pytest.raises(EmptyQuoteError):
            build_quote_document([], Decimal("0"))

    def test_blank_customer_is_na(self):
        doc = build_quote_document(line_items(), Decimal("40"), customer_name="")

        assert doc.customer_label == "Customer: N/A"

    def test_currency_symbol_and_title_override(self):
        doc = build_quote_document(line_items(), Decimal("40"), title="Draft", currency_symbol="€")

        assert doc.title == "Draft"
        assert doc.grand_total == "€40.00"

    def test_amounts_rounded_for_display_only(self):
        """Sub-cent prices are rounded half up in the document."""
        items = [LineItem(sku="X", description="Washer", unit_price=Decimal("0.125"), quantity=3)]

        doc = build_quote_document(items, Decimal("0.375"))

        assert doc.lines[0].unit_price == "$0.13"
        assert doc.lines[0].line_total == "$0.38"
        assert doc.grand_total == "$0.38"


class TestQuotePDFGenerator:
    """Test the QuotePDFGenerator class."""

    def test_generator_initialization(self):
        """Test QuotePDFGenerator initialization."""
        generator = QuotePDFGenerator()
        assert generator.styles is not None
        assert hasattr(generator, 'title_style')
        assert hasattr(generator, 'normal_style')
        assert hasattr(generator, 'table_header_style')
        assert hasattr(generator, 'total_style')

    def test_custom_styles_setup(self):
        """Test custom paragraph styles setup."""
        generator = QuotePDFGenerator()

        assert generator.title_style.fontSize == 18
        assert generator.normal_style.fontSize == 12
        assert generator.total_style.fontName == 'Helvetica-Bold'

    def test_create_header(self, document):
        """Title comes first, then the customer line."""
        generator = QuotePDFGenerator()
        elements = generator._create_header(document)

        assert elements[0].getPlainText() == "GVWS Sales Quote"
        assert elements[1].getPlainText() == "Customer: Acme Corp"

    def test_create_header_with_quote_reference(self, document):
        document.quote_id = 1767225600000
        document.quote_date = datetime(2026, 1, 1, tzinfo=timezone.utc)
        generator = QuotePDFGenerator()

        elements = generator._create_header(document)

        assert "1767225600000" in elements[1].getPlainText()
        assert "2026-01-01" in elements[1].getPlainText()

    def test_create_line_items_table(self, document):
        """Header row plus one row per line item."""
        generator = QuotePDFGenerator()
        table = generator._create_line_items_table(document)[0]

        assert table._nrows == 3
        assert table._ncols == len(TABLE_HEADER)

    def test_total_line(self, document):
        generator = QuotePDFGenerator()

        elements = generator._create_total_line(document)

        assert elements[0].getPlainText() == "Total: $40.00"

    def test_generate_returns_pdf_bytes(self, document):
        """Test PDF generation to bytes."""
        pdf_bytes = QuotePDFGenerator().generate(document)

        assert pdf_bytes.startswith(b"%PDF")
        assert len(pdf_bytes) > 500

    def test_markup_characters_are_escaped(self):
        """Descriptions with markup characters render without error."""
        items = [LineItem(sku="<b>", description="Nuts & bolts <10mm>", unit_price=Decimal("1"), quantity=1)]
        doc = build_quote_document(items, Decimal("1"), customer_name="O'Brien & Sons")

        assert render_quote_pdf(doc).startswith(b"%PDF")

    def test_many_lines_span_pages(self):
        items = [
            LineItem(sku=f"SKU-{i}", description=f"Item {i}", unit_price=Decimal("1.50"), quantity=i + 1)
            for i in range(120)
        ]
        total = sum((item.line_total for item in items), Decimal("0"))

        pdf_bytes = render_quote_pdf(build_quote_document(items, total))

        assert pdf_bytes.startswith(b"%PDF")

    def test_write_to_file(self, document, tmp_path):
        """Test writing the PDF to disk."""
        output_path = os.path.join(str(tmp_path), "out", "gvws-quote.pdf")

        result = QuotePDFGenerator().write(document, output_path)

        assert result == output_path
        with open(output_path, "rb") as fh:
            assert fh.read(4) == b"%PDF"

    @patch('quote_builder.pdf.SimpleDocTemplate')
    def test_generation_failure_wrapped(self, mock_template, document):
        """ReportLab errors surface as PDFGenerationError."""
        mock_template.return_value.build.side_effect = RuntimeError("layout failed")

        with pytest.raises(PDFGenerationError, match="layout failed"):
            QuotePDFGenerator().generate(document)
