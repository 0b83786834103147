"""Unit tests for the CSV import adapter."""
import pytest

from quote_builder.csv_import import parse_csv
from quote_builder.exceptions import ImportValidationError


class TestParseCsv:
    """Test CSV parsing into row mappings."""

    def test_rows_keep_header_order_and_string_values(self):
        """Values are not type-converted."""
        rows = parse_csv("sku,description,price\n123456,Product A,10\n234567,Product B,20.50\n")

        assert rows == [
            {"sku": "123456", "description": "Product A", "price": "10"},
            {"sku": "234567", "description": "Product B", "price": "20.50"},
        ]

    def test_leading_zeros_preserved(self):
        """Skus that look numeric stay text."""
        rows = parse_csv("sku,description,price\n007,Agent kit,1\n")

        assert rows[0]["sku"] == "007"

    def test_empty_cells_are_empty_strings(self):
        """Missing values are '' rather than NaN."""
        rows = parse_csv("name,phone,status,salesRep\nAcme,,active,\nGlobex,555,prospect\n")

        assert rows[0]["phone"] == ""
        assert rows[0]["salesRep"] == ""
        assert rows[1]["salesRep"] == ""

    def test_blank_rows_skipped(self):
        """Blank and all-empty lines do not produce rows."""
        rows = parse_csv("sku,description,price\n\nA,Thing,1\n,,\n\n")

        assert len(rows) == 1
        assert rows[0]["sku"] == "A"

    def test_header_whitespace_stripped(self):
        rows = parse_csv(" sku , description ,price\nA,Thing,1\n")

        assert set(rows[0]) == {"sku", "description", "price"}

    def test_bytes_with_bom(self):
        """UTF-8 uploads with a byte order mark parse cleanly."""
        data = "sku,description,price\nA,Café table,5\n".encode("utf-8-sig")

        rows = parse_csv(data)

        assert list(rows[0]) == ["sku", "description", "price"]
        assert rows[0]["description"] == "Café table"

    def test_cp1252_bytes(self):
        """Non UTF-8 spreadsheets exports are decoded."""
        data = "sku,description,price\nA,Caf\xe9,5\n".encode("cp1252")

        rows = parse_csv(data)

        assert rows[0]["description"] == "Café"

    def test_quoted_fields(self):
        rows = parse_csv('sku,description,price\nA,"Bolt, 10mm",0.5\n')

        assert rows[0]["description"] == "Bolt, 10mm"

    def test_header_only(self):
        """A header without data rows gives no rows."""
        assert parse_csv("sku,description,price\n") == []

    def test_empty_input(self):
        """Completely empty input is an import error."""
        with pytest.raises(ImportValidationError, match="empty"):
            parse_csv("")
