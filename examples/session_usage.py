#!/usr/bin/env python3
"""Example usage of a quoting session without the HTTP layer."""
from quote_builder.actions import QuoteSession
from quote_builder.cart import format_money
from quote_builder.exceptions import ImportValidationError, MissingRecipientError
from quote_builder.ledger import QuoteLedger
from quote_builder.store import InMemoryStore


ITEMS_CSV = """sku,description,price
123456,Product A,10
234567,Product B,20
345678,Widget Bracket (steel),4.75
"""


def example_catalog_operations(session):
    """Example of catalog import and search."""
    print("=== Catalog Operations ===")

    count = session.import_items(ITEMS_CSV)
    print(f"Imported {count} catalog items")

    try:
        session.import_items("sku,description\n999,No price\n")
    except ImportValidationError as e:
        print(f"Rejected import: {e}")

    for item in session.catalog.search("widget"):
        print(f"Search hit: {item.sku} {item.description} {format_money(item.unit_price)}")


def example_quote_operations(session):
    """Example of building and committing a quote."""
    print("\n=== Quote Operations ===")

    session.working.set_customer("Acme Corp")
    session.add_to_quote("123456")
    session.add_to_quote("123456")
    session.add_to_quote("345678")
    session.working.set_quantity("345678", "4")

    for line in session.working.line_items:
        print(f"  {line.sku} x{line.quantity} = {format_money(line.line_total)}")
    print(f"Working total: {format_money(session.working.total())}")

    try:
        session.send_email()
    except MissingRecipientError as e:
        print(f"Email blocked: {e}")

    result = session.download_pdf()
    if result is not None:
        quote, pdf_bytes = result
        print(f"Saved quote {quote.id} and rendered {len(pdf_bytes)} PDF bytes")


def example_history_operations(session):
    """Example of reading history and reports."""
    print("\n=== History Operations ===")

    for quote in session.ledger.list():
        print(f"Quote {quote.id}: {quote.customer_name} {format_money(quote.total)}")

    for entry in session.totals_by_date():
        print(f"{entry.day}: {format_money(entry.total)}")


def main():
    """Run all examples."""
    session = QuoteSession(QuoteLedger(InMemoryStore()))

    example_catalog_operations(session)
    example_quote_operations(session)
    example_history_operations(session)

    print("\n=== All examples completed successfully! ===")


if __name__ == "__main__":
    main()
