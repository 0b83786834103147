"""Pydantic models for the quote data model and API input/output."""
from pydantic import BaseModel, Field, ConfigDict, computed_field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime, date, timezone


# Version of the serialized history envelope kept in the store
HISTORY_SCHEMA_VERSION = 1


# =============================================================================
# BASE SCHEMAS
# =============================================================================

class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response schema."""
    error: str = Field(description="Error type/code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(description="Additional error details", default=None)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp")


# =============================================================================
# CATALOG SCHEMAS
# =============================================================================

class CatalogItem(CamelModel):
    """A purchasable item in the catalog."""
    model_config = ConfigDict(frozen=True)

    sku: str = Field(description="Stock keeping unit, unique within the catalog", min_length=1)
    description: str = Field(description="Item description")
    unit_price: Decimal = Field(description="Unit price", ge=0)


class Customer(CamelModel):
    """Customer row imported from CSV; unknown columns are kept verbatim."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(description="Customer name")
    phone: str = Field(description="Phone number")
    status: str = Field(description="Account status")
    sales_rep: str = Field(description="Assigned sales representative")


# =============================================================================
# QUOTE SCHEMAS
# =============================================================================

class LineItem(CatalogItem):
    """Catalog item fields plus a quantity within one quote."""
    model_config = ConfigDict(frozen=False, validate_assignment=True)

    quantity: int = Field(description="Quantity", ge=1, default=1)

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Quote(CamelModel):
    """A committed quote; never mutated after it is written to history."""
    id: int = Field(description="Time-based quote identifier")
    created_at: datetime = Field(description="Commit timestamp")
    customer_name: Optional[str] = Field(description="Customer name", default=None)
    customer_email: Optional[str] = Field(description="Customer email", default=None)
    line_items: List[LineItem] = Field(description="Quote line items", default_factory=list)
    total: Decimal = Field(description="Total frozen at commit time")


class QuoteHistoryEnvelope(CamelModel):
    """Serialized form of the quote history held in the durable store."""
    version: int = Field(description="History schema version", default=HISTORY_SCHEMA_VERSION)
    quotes: List[Quote] = Field(description="Committed quotes, newest first", default_factory=list)


class QuoteFields(CamelModel):
    """Editable fields of a quote, used to repopulate the working quote."""
    customer_name: Optional[str] = Field(description="Customer name", default=None)
    customer_email: Optional[str] = Field(description="Customer email", default=None)
    line_items: List[LineItem] = Field(description="Quote line items", default_factory=list)


class DateTotal(CamelModel):
    """Sum of committed quote totals for one calendar date."""
    day: date = Field(description="Calendar date of createdAt")
    total: Decimal = Field(description="Sum of stored quote totals")


# =============================================================================
# API REQUEST/RESPONSE SCHEMAS
# =============================================================================

class AddItemRequest(CamelModel):
    """Add a catalog item to the working quote."""
    sku: str = Field(description="Catalog sku")


class SetQuantityRequest(CamelModel):
    """Overwrite a line item quantity; invalid values are clamped to 1."""
    quantity: Any = Field(description="Requested quantity", default=None)


class CustomerUpdate(CamelModel):
    """Customer identity attached to the working quote."""
    customer_name: Optional[str] = Field(description="Customer name", default=None)
    customer_email: Optional[str] = Field(description="Customer email", default=None)


class WorkingQuoteResponse(CamelModel):
    """Current state of the working quote."""
    customer_name: Optional[str] = Field(description="Customer name", default=None)
    customer_email: Optional[str] = Field(description="Customer email", default=None)
    line_items: List[LineItem] = Field(description="Quote line items")
    total: Decimal = Field(description="Unrounded total")
    total_formatted: str = Field(description="Total rounded for display")
    version: int = Field(description="Mutation counter")


class CatalogResponse(CamelModel):
    """Catalog search result."""
    items: List[CatalogItem] = Field(description="Matching catalog items")
    total_count: int = Field(description="Number of matching items")


class CustomersResponse(CamelModel):
    """Imported customers."""
    customers: List[Customer] = Field(description="Customer rows")
    total_count: int = Field(description="Number of customers")


class ImportResponse(CamelModel):
    """Result of a successful CSV import."""
    kind: str = Field(description="'items' or 'customers'")
    row_count: int = Field(description="Number of rows now loaded")
    message: str = Field(description="User-facing message")


class CommitResponse(CamelModel):
    """Result of committing the working quote."""
    committed: bool = Field(description="False when the working quote was empty")
    quote: Optional[Quote] = Field(description="The committed quote", default=None)


class EmailOutcome(CamelModel):
    """Result of the email action."""
    quote_id: int = Field(description="Committed quote identifier")
    recipient: str = Field(description="Customer email address")
    delivered: bool = Field(description="Whether a mail transport delivered the quote")
    message: str = Field(description="User-facing message")


class HistoryResponse(CamelModel):
    """Committed quote history, newest first."""
    quotes: List[Quote] = Field(description="Committed quotes")
    total_count: int = Field(description="Number of committed quotes")


class TotalsByDateResponse(CamelModel):
    """Per-date totals report."""
    totals: List[DateTotal] = Field(description="Per-date sums")
    grand_total: Decimal = Field(description="Sum over the full history")
