"""Catalog manager and session customer directory."""
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from quote_builder.exceptions import ImportValidationError, CatalogItemNotFoundError
from quote_builder.schemas import CatalogItem, Customer


ITEM_COLUMNS = ("sku", "description", "price")
CUSTOMER_COLUMNS = ("name", "phone", "status", "salesRep")

SEED_CATALOG = (
    CatalogItem(sku="123456", description="Product A", unit_price=Decimal("10")),
    CatalogItem(sku="234567", description="Product B", unit_price=Decimal("20")),
)


def _missing_columns(rows: Sequence[Mapping[str, Any]], required: Sequence[str]) -> List[str]:
    missing = []
    for row in rows:
        for column in required:
            if column not in row and column not in missing:
                missing.append(column)
    return missing


def parse_price(value: Any) -> Decimal:
    """Parse a price cell into a finite, non-negative Decimal."""
    if value is None or isinstance(value, bool):
        raise ValueError("price is empty")
    text = str(value).strip()
    if not text:
        raise ValueError("price is empty")
    try:
        price = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"price '{text}' is not a number")
    if not price.is_finite():
        raise ValueError(f"price '{text}' is not a number")
    if price < 0:
        raise ValueError(f"price '{text}' is negative")
    return price


def validate_catalog_rows(rows: Sequence[Mapping[str, Any]]) -> List[CatalogItem]:
    """Check every row and convert it into a ``CatalogItem``.

    Raises ``ImportValidationError`` on the first problem; nothing is
    returned for a partially valid file.
    """
    if not rows:
        raise ImportValidationError("Invalid items file. File contains no rows.")

    missing = _missing_columns(rows, ITEM_COLUMNS)
    if missing:
        raise ImportValidationError(
            f"Invalid items file. Must include: {', '.join(ITEM_COLUMNS)}. Missing: {', '.join(missing)}.",
            missing_columns=missing
        )

    items: List[CatalogItem] = []
    seen = set()
    # Row numbers count the header as row 1
    for row_number, row in enumerate(rows, start=2):
        sku = str(row["sku"] or "").strip()
        description = str(row["description"] or "").strip()
        if not sku:
            raise ImportValidationError(f"Invalid items file. Row {row_number}: sku is empty.", row=row_number)
        if not description:
            raise ImportValidationError(f"Invalid items file. Row {row_number}: description is empty.", row=row_number)
        if sku in seen:
            raise ImportValidationError(f"Invalid items file. Row {row_number}: duplicate sku '{sku}'.", row=row_number)
        try:
            price = parse_price(row["price"])
        except ValueError as e:
            raise ImportValidationError(f"Invalid items file. Row {row_number}: {str(e)}.", row=row_number)

        seen.add(sku)
        items.append(CatalogItem(sku=sku, description=description, unit_price=price))

    return items


class CatalogSearch:
    """Lazy, restartable view of catalog items matching a search term.

    Each iteration filters the catalog as it is at that moment, in catalog
    order, matching the term case-insensitively against sku or description.
    """

    def __init__(self, catalog: "CatalogManager", term: Optional[str] = ""):
        self._catalog = catalog
        self.term = term or ""

    def __iter__(self) -> Iterator[CatalogItem]:
        needle = self.term.strip().lower()
        for item in self._catalog.items():
            if not needle or needle in item.sku.lower() or needle in item.description.lower():
                yield item


class CatalogManager:
    """Holds the current catalog; only ever replaced as a whole."""

    def __init__(self, items: Optional[Sequence[CatalogItem]] = None):
        self._items: List[CatalogItem] = list(SEED_CATALOG if items is None else items)

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> List[CatalogItem]:
        return list(self._items)

    def get(self, sku: str) -> Optional[CatalogItem]:
        for item in self._items:
            if item.sku == sku:
                return item
        return None

    def require(self, sku: str) -> CatalogItem:
        item = self.get(sku)
        if item is None:
            raise CatalogItemNotFoundError(f"Catalog item with sku '{sku}' not found")
        return item

    def replace_catalog(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Replace the whole catalog with validated rows and return the new size.

        The current catalog is left untouched if any row is rejected.
        """
        items = validate_catalog_rows(rows)
        self._items = items
        return len(items)

    def search(self, term: Optional[str] = "") -> CatalogSearch:
        return CatalogSearch(self, term)


class CustomerDirectory:
    """Customers imported for the current session; never persisted."""

    def __init__(self):
        self._customers: List[Customer] = []

    def __len__(self) -> int:
        return len(self._customers)

    def customers(self) -> List[Customer]:
        return list(self._customers)

    def replace_customers(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Replace the customer list with ``rows`` stored verbatim."""
        if not rows:
            raise ImportValidationError("Invalid customer file. File contains no rows.")

        missing = _missing_columns(rows, CUSTOMER_COLUMNS)
        if missing:
            raise ImportValidationError(
                f"Invalid customer file. Must include: {', '.join(CUSTOMER_COLUMNS)}. Missing: {', '.join(missing)}.",
                missing_columns=missing
            )

        customers: List[Customer] = []
        for row_number, row in enumerate(rows, start=2):
            try:
                customers.append(Customer.model_validate(dict(row)))
            except ValidationError as e:
                raise ImportValidationError(
                    f"Invalid customer file. Row {row_number}: {e.errors()[0]['msg']}.",
                    row=row_number
                )

        self._customers = customers
        return len(customers)
