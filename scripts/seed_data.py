from __future__ import annotations

import argparse

from services.api.app.db.init_db import init_db
from services.api.app.services.catalog import CatalogStore
from services.api.app.services.event_log import EventRecorder
from services.api.app.services.sql_store import SqlDocumentStore

# name, price_cents, category
_DEFAULT_PRODUCTS = (
    ("Sourdough Loaf", 650, "Bakery"),
    ("Croissant", 325, "Bakery"),
    ("Apples (1 kg)", 420, "Produce"),
    ("Bananas (bunch)", 199, "Produce"),
    ("Oat Milk", 375, "Dairy"),
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a starter OrderFlow product catalog")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Add the starter products even if the catalog already has entries",
    )
    args = parser.parse_args()

    init_db()

    backend = SqlDocumentStore()
    catalog = CatalogStore(backend, events=EventRecorder(backend))

    existing = catalog.list_products()
    if existing and not args.force:
        print(f"Catalog already has {len(existing)} products; use --force to add more")
        return 0

    for name, price_cents, category in _DEFAULT_PRODUCTS:
        catalog.add_product(name, price_cents, category=category)

    print(f"Seeded {len(_DEFAULT_PRODUCTS)} products")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
