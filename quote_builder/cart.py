"""Working quote: the in-progress quote being edited."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Optional, Tuple

from quote_builder.exceptions import LineItemNotFoundError
from quote_builder.schemas import CatalogItem, LineItem, QuoteFields


def format_money(amount: Optional[Decimal], symbol: str = "$") -> str:
    """Round to cents for display only."""
    if amount is None:
        amount = Decimal("0")
    q = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{symbol}{q:,.2f}"


def coerce_quantity(value: Any) -> int:
    """Return ``value`` as a positive integer, or 1 if it is not one.

    Accepts ints, integral floats/Decimals and numeric strings; anything else
    (empty text, ``None``, NaN, zero, negatives, fractions) becomes 1.
    """
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, int):
        return value if value >= 1 else 1
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return 1
    if not number.is_finite() or number != number.to_integral_value() or number < 1:
        return 1
    return int(number)


class WorkingQuote:
    """Single-owner, mutable quote under construction.

    ``version`` increases with every mutation and keys the memoized total.
    """

    def __init__(self):
        self._line_items: List[LineItem] = []
        self.customer_name: str = ""
        self.customer_email: str = ""
        self.version: int = 0
        self._total_cache: Optional[Tuple[int, Decimal]] = None

    def __len__(self) -> int:
        return len(self._line_items)

    @property
    def is_empty(self) -> bool:
        return not self._line_items

    @property
    def line_items(self) -> List[LineItem]:
        """Copies of the current line items, in first-insertion order."""
        return [item.model_copy(deep=True) for item in self._line_items]

    def _touch(self):
        self.version += 1

    def _find(self, sku: str) -> Optional[LineItem]:
        for item in self._line_items:
            if item.sku == sku:
                return item
        return None

    def add_item(self, catalog_item: CatalogItem) -> LineItem:
        """Add one unit of ``catalog_item``; repeated adds increment in place."""
        existing = self._find(catalog_item.sku)
        if existing is not None:
            existing.quantity += 1
            line = existing
        else:
            line = LineItem(
                sku=catalog_item.sku,
                description=catalog_item.description,
                unit_price=catalog_item.unit_price,
                quantity=1
            )
            self._line_items.append(line)
        self._touch()
        return line.model_copy(deep=True)

    def set_quantity(self, sku: str, quantity: Any) -> LineItem:
        """Overwrite the quantity for ``sku``; invalid values are clamped to 1."""
        line = self._find(sku)
        if line is None:
            raise LineItemNotFoundError(f"No line item with sku '{sku}' in the working quote")
        line.quantity = coerce_quantity(quantity)
        self._touch()
        return line.model_copy(deep=True)

    def set_customer(self, name: Optional[str] = None, email: Optional[str] = None):
        """Update customer fields; ``None`` leaves a field unchanged."""
        if name is not None:
            self.customer_name = name.strip()
        if email is not None:
            self.customer_email = email.strip()
        self._touch()

    def total(self) -> Decimal:
        """Sum of quantity x unit price, unrounded."""
        if self._total_cache is not None and self._total_cache[0] == self.version:
            return self._total_cache[1]
        total = sum((item.unit_price * item.quantity for item in self._line_items), Decimal("0"))
        self._total_cache = (self.version, total)
        return total

    def fields(self) -> QuoteFields:
        """Deep copy of the editable fields, independent of later edits."""
        return QuoteFields(
            customer_name=self.customer_name or None,
            customer_email=self.customer_email or None,
            line_items=self.line_items
        )

    def load(self, fields: QuoteFields):
        """Replace the working quote with ``fields`` (e.g. from history)."""
        self._line_items = [item.model_copy(deep=True) for item in fields.line_items]
        self.customer_name = fields.customer_name or ""
        self.customer_email = fields.customer_email or ""
        self._touch()

    def reset(self):
        """Clear line items and customer fields."""
        self._line_items = []
        self.customer_name = ""
        self.customer_email = ""
        self._touch()
