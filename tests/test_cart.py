"""Unit tests for the working quote."""
import pytest
from decimal import Decimal

from quote_builder.cart import WorkingQuote, coerce_quantity, format_money
from quote_builder.catalog import SEED_CATALOG
from quote_builder.exceptions import LineItemNotFoundError
from quote_builder.schemas import CatalogItem, LineItem, QuoteFields


PRODUCT_A = CatalogItem(sku="123456", description="Product A", unit_price=Decimal("10"))
PRODUCT_B = CatalogItem(sku="234567", description="Product B", unit_price=Decimal("20"))
PRODUCT_C = CatalogItem(sku="345678", description="Widget", unit_price=Decimal("4.75"))


@pytest.fixture
def working():
    """Create an empty working quote."""
    return WorkingQuote()


class TestAddItem:
    """Test adding catalog items."""

    def test_add_same_item_twice(self, working):
        """Adding the same sku twice yields one line with quantity 2."""
        working.add_item(PRODUCT_A)
        working.add_item(PRODUCT_A)

        assert len(working.line_items) == 1
        assert working.line_items[0].quantity == 2
        assert working.total() == Decimal("20")
        assert format_money(working.total()) == "$20.00"

    def test_counts_match_number_of_adds(self, working):
        """Each sku's quantity equals how often it was added; no duplicates."""
        sequence = [PRODUCT_A, PRODUCT_B, PRODUCT_A, PRODUCT_C, PRODUCT_B, PRODUCT_A]
        for item in sequence:
            working.add_item(item)

        skus = [line.sku for line in working.line_items]
        assert len(skus) == len(set(skus))
        quantities = {line.sku: line.quantity for line in working.line_items}
        assert quantities == {"123456": 3, "234567": 2, "345678": 1}

    def test_increment_keeps_first_insertion_order(self, working):
        """Incrementing an existing line does not move it."""
        working.add_item(PRODUCT_B)
        working.add_item(PRODUCT_A)
        working.add_item(PRODUCT_B)

        assert [line.sku for line in working.line_items] == ["234567", "123456"]

    def test_line_item_copies_catalog_fields(self, working):
        """New lines carry sku, description and unit price."""
        line = working.add_item(PRODUCT_C)

        assert line.sku == "345678"
        assert line.description == "Widget"
        assert line.unit_price == Decimal("4.75")
        assert line.quantity == 1
        assert line.line_total == Decimal("4.75")


class TestSetQuantity:
    """Test quantity overwrites."""

    def test_total_changes_by_quantity_delta(self, working):
        """Total moves by (new - old) x unit price."""
        working.add_item(PRODUCT_A)
        working.add_item(PRODUCT_C)
        before = working.total()

        working.set_quantity("345678", 7)

        assert working.total() - before == (7 - 1) * Decimal("4.75")

    @pytest.mark.parametrize("value", ["abc", "", None, 0, -3, 2.5, "2.5", float("nan"), "NaN", True, [], "Infinity"])
    def test_invalid_quantity_clamped_to_one(self, working, value):
        """Anything that is not a positive integer becomes 1."""
        working.add_item(PRODUCT_A)
        working.add_item(PRODUCT_A)

        line = working.set_quantity("123456", value)

        assert line.quantity == 1
        assert working.total() == Decimal("10")

    @pytest.mark.parametrize("value,expected", [(4, 4), ("3", 3), (" 12 ", 12), (5.0, 5), (Decimal("6"), 6)])
    def test_valid_quantity(self, working, value, expected):
        """Positive integers, including numeric text, are accepted."""
        working.add_item(PRODUCT_B)

        line = working.set_quantity("234567", value)

        assert line.quantity == expected
        assert working.total() == Decimal("20") * expected

    def test_unknown_sku(self, working):
        """Setting the quantity of a missing line fails."""
        with pytest.raises(LineItemNotFoundError, match="999"):
            working.set_quantity("999", 2)


class TestCoerceQuantity:
    """Test the quantity guard directly."""

    def test_never_returns_nan_or_nonpositive(self):
        """The guard always yields an int >= 1."""
        for value in [float("nan"), float("inf"), -1, 0, "x", None, "1e400"]:
            result = coerce_quantity(value)
            assert isinstance(result, int)
            assert result >= 1


class TestWorkingQuoteState:
    """Test customer fields, reset, load and versioning."""

    def test_line_items_are_copies(self, working):
        """Mutating returned line items does not touch the working quote."""
        working.add_item(PRODUCT_A)

        copy = working.line_items[0]
        copy.quantity = 99

        assert working.line_items[0].quantity == 1

    def test_set_customer(self, working):
        """Customer fields are stored trimmed; None leaves a field alone."""
        working.set_customer(" Acme ", "buyer@acme.example")
        working.set_customer(name=None, email=" new@acme.example ")

        assert working.customer_name == "Acme"
        assert working.customer_email == "new@acme.example"

    def test_reset(self, working):
        """Reset clears lines and customer fields."""
        working.add_item(PRODUCT_A)
        working.set_customer("Acme", "buyer@acme.example")

        working.reset()

        assert working.is_empty
        assert working.customer_name == ""
        assert working.customer_email == ""
        assert working.total() == Decimal("0")

    def test_version_increments_on_mutation(self, working):
        """Every mutating call bumps the version."""
        versions = [working.version]
        working.add_item(PRODUCT_A)
        versions.append(working.version)
        working.set_quantity("123456", 3)
        versions.append(working.version)
        working.set_customer("Acme")
        versions.append(working.version)
        working.reset()
        versions.append(working.version)

        assert versions == sorted(set(versions))

    def test_total_recomputed_after_mutation(self, working):
        """The memoized total follows the version."""
        working.add_item(PRODUCT_A)
        assert working.total() == Decimal("10")
        assert working.total() == Decimal("10")

        working.add_item(PRODUCT_B)
        assert working.total() == Decimal("30")

    def test_load_replaces_contents(self, working):
        """Loading fields replaces lines and customer, decoupled from the source."""
        working.add_item(PRODUCT_C)
        fields = QuoteFields(
            customer_name="Globex",
            customer_email=None,
            line_items=[LineItem(sku="123456", description="Product A", unit_price=Decimal("10"), quantity=4)]
        )

        working.load(fields)
        working.set_quantity("123456", 1)

        assert [line.sku for line in working.line_items] == ["123456"]
        assert working.customer_name == "Globex"
        assert working.customer_email == ""
        assert fields.line_items[0].quantity == 4

    def test_fields_snapshot_is_independent(self, working):
        """fields() returns a deep copy."""
        working.add_item(PRODUCT_A)
        snapshot = working.fields()

        working.add_item(PRODUCT_A)

        assert snapshot.line_items[0].quantity == 1


class TestFormatMoney:
    """Test presentation rounding."""

    def test_rounds_half_up_to_cents(self):
        assert format_money(Decimal("10.005")) == "$10.01"
        assert format_money(Decimal("1234.5")) == "$1,234.50"
        assert format_money(None) == "$0.00"

    def test_seed_catalog_prices(self):
        assert [format_money(item.unit_price) for item in SEED_CATALOG] == ["$10.00", "$20.00"]
