"""Read-only reports derived from quote history."""
from decimal import Decimal
from typing import Dict, Iterable, List
from datetime import date

from quote_builder.schemas import DateTotal, Quote


def totals_by_date(history: Iterable[Quote], sort: bool = False) -> List[DateTotal]:
    """Sum stored quote totals per calendar date of ``created_at``.

    The date is taken in the timestamp's own timezone. Groups appear in the
    order their date is first seen while walking ``history`` (newest first
    for ledger history) unless ``sort`` is set, which orders by date.
    """
    sums: Dict[date, Decimal] = {}
    for quote in history:
        day = quote.created_at.date()
        sums[day] = sums.get(day, Decimal("0")) + quote.total

    totals = [DateTotal(day=day, total=total) for day, total in sums.items()]
    if sort:
        totals.sort(key=lambda entry: entry.day)
    return totals


def grand_total(history: Iterable[Quote]) -> Decimal:
    return sum((quote.total for quote in history), Decimal("0"))
