#!/usr/bin/env python3
"""Seed demo data for Quote Builder: sample CSV files and a few saved quotes.

Quotes are only committed when the history is empty, so re-running is safe.
"""

import os
import sys
import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from quote_builder.cart import WorkingQuote
from quote_builder.catalog import CatalogManager
from quote_builder.config import settings
from quote_builder.csv_import import parse_csv
from quote_builder.ledger import QuoteLedger
from quote_builder.pdf import QuotePDFGenerator, build_quote_document
from quote_builder.schemas import Quote
from quote_builder.store import open_sql_store


ITEMS_CSV = """sku,description,price
123456,Product A,10
234567,Product B,20
345678,Widget Bracket (steel),4.75
456789,Hinge Kit,12.50
567890,Mounting Rail 2m,39.99
"""

CUSTOMERS_CSV = """name,phone,status,salesRep
Acme Corp,555-0100,active,Dana
Globex,555-0101,prospect,Lee
Initech,555-0102,inactive,Dana
"""

# (days ago, customer name, email, [(sku, qty), ...])
DEMO_QUOTES = [
    (2, "Acme Corp", "buyer@acme.example", [("123456", 3), ("456789", 1)]),
    (1, "Globex", "", [("567890", 2)]),
    (1, "Initech", "orders@initech.example", [("345678", 10), ("234567", 1)]),
    (0, "Acme Corp", "buyer@acme.example", [("234567", 4)]),
]


def write_sample_files(output_dir: Path):
    """Write items.csv and customers.csv for the upload buttons."""
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "items.csv").write_text(ITEMS_CSV, encoding="utf-8")
    (output_dir / "customers.csv").write_text(CUSTOMERS_CSV, encoding="utf-8")
    print(f"✓ Wrote sample CSVs to {output_dir}")


def seed_quotes(db_url: str) -> Optional[Quote]:
    """Commit the demo quotes into an empty history and return the newest quote."""
    store = open_sql_store(db_url)
    try:
        now = datetime.now(timezone.utc)
        catalog = CatalogManager()
        catalog.replace_catalog(parse_csv(ITEMS_CSV))

        # Oldest first so history ends up newest first
        demo_quotes = sorted(DEMO_QUOTES, key=lambda q: -q[0])
        timestamps = iter([now - timedelta(days=q[0]) for q in demo_quotes])
        ledger = QuoteLedger(store, key=settings.history_key, clock=lambda: next(timestamps))
        if len(ledger):
            print(f"History already has {len(ledger)} quotes, skipping")
            return ledger.list()[0]

        for _, name, email, lines in demo_quotes:
            working = WorkingQuote()
            working.set_customer(name, email)
            for sku, qty in lines:
                working.add_item(catalog.require(sku))
                working.set_quantity(sku, qty)

            quote = ledger.commit(working)
            print(f"✓ Quote {quote.id} for {name}: {quote.total}")

        history = ledger.list()
        return history[0] if history else None
    finally:
        store.close()


def write_sample_pdf(quote: Quote, output_dir: Path):
    """Render ``quote`` the way the PDF download does and save it next to the CSVs."""
    document = build_quote_document(
        quote.line_items,
        quote.total,
        customer_name=quote.customer_name,
        quote_id=quote.id,
        quote_date=quote.created_at
    )
    path = QuotePDFGenerator().write(document, str(output_dir / settings.pdf_filename))
    print(f"✓ Wrote sample quote PDF to {path}")


def main():
    parser = argparse.ArgumentParser(description="Seed Quote Builder demo data")
    parser.add_argument("--db-url", default=settings.db_url, help="Store database URL")
    parser.add_argument("--output-dir", default="samples", help="Where to write sample CSV and PDF files")
    args = parser.parse_args()

    print("🌱 Seeding Quote Builder demo data...")
    output_dir = Path(args.output_dir)
    write_sample_files(output_dir)
    newest = seed_quotes(args.db_url)
    if newest is not None:
        write_sample_pdf(newest, output_dir)
    print("✅ Seeding complete")


if __name__ == "__main__":
    main()
