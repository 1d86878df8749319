from __future__ import annotations

import logging
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.api.app.models.product import Product
from services.api.app.services.event_log import EventRecorder
from services.api.app.services.orderflow_base import (
    PRODUCTS_COLLECTION,
    DocumentStore,
    InvalidProductError,
    NotFoundError,
    OrderFlowError,
)

logger = logging.getLogger(__name__)


class CatalogStore:
    """Product catalog. Line items copy name and price at staging time, so edits here never
    rewrite pending batches or history."""

    def __init__(self, backend: DocumentStore, events: EventRecorder | None = None) -> None:
        self._backend = backend
        self._events = events

    def add_product(
        self,
        name: str,
        price_cents: int,
        description: str | None = None,
        category: str | None = None,
    ) -> Product:
        product = _validated(
            Product(
                id=uuid4().hex,
                name=name,
                price_cents=price_cents,
                description=description,
                category=category,
            )
        )
        self._save(product)
        self._record(product.id, EventTypeV1.PRODUCT_ADDED, {"name": product.name})
        logger.info("Added product id=%s name=%s", product.id, product.name)
        return product

    def update_product(self, product: Product) -> Product:
        if self._backend.get(PRODUCTS_COLLECTION, product.id) is None:
            raise NotFoundError("Product", product.id)

        product = _validated(product)
        self._save(product)
        self._record(product.id, EventTypeV1.PRODUCT_UPDATED, {"name": product.name})
        return product

    def delete_product(self, product_id: str) -> None:
        if not self._backend.delete(PRODUCTS_COLLECTION, product_id):
            raise NotFoundError("Product", product_id)
        self._record(product_id, EventTypeV1.PRODUCT_DELETED, {})

    def get_product(self, product_id: str) -> Product | None:
        doc = self._backend.get(PRODUCTS_COLLECTION, product_id)
        return Product.model_validate(doc) if doc is not None else None

    def list_products(self) -> list[Product]:
        products = [Product.model_validate(doc) for doc in self._backend.get_all(PRODUCTS_COLLECTION)]
        return sorted(products, key=lambda p: p.name.lower())

    def list_categories(self) -> list[str]:
        categories = {p.category.strip() for p in self.list_products() if p.category and p.category.strip()}
        return sorted(categories, key=str.lower)

    def _save(self, product: Product) -> None:
        self._backend.upsert(PRODUCTS_COLLECTION, product.id, product.model_dump(mode="json"))

    def _record(self, product_id: str, event_type: EventTypeV1, payload: dict) -> None:
        if self._events is None:
            return
        try:
            self._events.record(
                entity_type=EntityTypeV1.PRODUCT,
                entity_id=product_id,
                event_type=event_type,
                payload=payload,
            )
        except OrderFlowError:
            # The product write is already committed at this point.
            logger.exception("Failed to record %s for product %s", event_type.value, product_id)


def _validated(product: Product) -> Product:
    name = (product.name or "").strip()
    if not name:
        raise InvalidProductError("Product name is required")
    if product.price_cents < 0:
        raise InvalidProductError(f"Price must be >= 0, got {product.price_cents}")

    description = (product.description or "").strip() or None
    category = (product.category or "").strip() or None
    return product.model_copy(update={"name": name, "description": description, "category": category})
