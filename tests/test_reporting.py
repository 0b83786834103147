"""Unit tests for history reports."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from datetime import date

from quote_builder.reporting import grand_total, totals_by_date
from quote_builder.schemas import LineItem, Quote


def make_quote(quote_id, created_at, total):
    return Quote(
        id=quote_id,
        created_at=created_at,
        customer_name="Acme Corp",
        line_items=[LineItem(sku="123456", description="Product A", unit_price=Decimal(total), quantity=1)],
        total=Decimal(total)
    )


def history():
    """Newest-first history spanning three days."""
    return [
        make_quote(6, datetime(2026, 5, 3, 9, 0, tzinfo=timezone.utc), "5.50"),
        make_quote(5, datetime(2026, 5, 1, 16, 0, tzinfo=timezone.utc), "20"),
        make_quote(4, datetime(2026, 5, 2, 11, 0, tzinfo=timezone.utc), "100"),
        make_quote(3, datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc), "10"),
        make_quote(2, datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc), "0.25"),
    ]


class TestTotalsByDate:
    """Test per-date totals."""

    def test_groups_in_first_seen_order(self):
        """Dates appear in the order they are first met in history."""
        totals = totals_by_date(history())

        assert [entry.day for entry in totals] == [date(2026, 5, 3), date(2026, 5, 1), date(2026, 5, 2)]
        assert [entry.total for entry in totals] == [Decimal("5.50"), Decimal("30.25"), Decimal("100")]

    def test_sorted_by_date(self):
        totals = totals_by_date(history(), sort=True)

        assert [entry.day for entry in totals] == [date(2026, 5, 1), date(2026, 5, 2), date(2026, 5, 3)]

    def test_sums_match_history_total(self):
        """The per-date sums add up to the total of all stored quotes."""
        quotes = history()

        totals = totals_by_date(quotes)

        assert sum((entry.total for entry in totals), Decimal("0")) == grand_total(quotes)
        assert grand_total(quotes) == Decimal("135.75")

    def test_uses_stored_totals(self):
        """Stored totals are summed even when they differ from the line items."""
        quote = make_quote(1, datetime(2026, 5, 1, tzinfo=timezone.utc), "10")
        quote.total = Decimal("12.34")

        totals = totals_by_date([quote])

        assert totals[0].total == Decimal("12.34")

    def test_date_in_timestamp_timezone(self):
        """The calendar date is taken from the timestamp as stored."""
        eastern = timezone(timedelta(hours=-5))
        late_evening = datetime(2026, 5, 1, 22, 0, tzinfo=eastern)

        totals = totals_by_date([make_quote(1, late_evening, "10")])

        assert totals[0].day == date(2026, 5, 1)

    def test_empty_history(self):
        assert totals_by_date([]) == []
        assert grand_total([]) == Decimal("0")
