from __future__ import annotations

from datetime import date, datetime

from services.api.app.models.order import Order
from services.api.app.services.orderflow_base import (
    ORDERS_COLLECTION,
    DocumentStore,
    NotFoundError,
    as_utc,
)


class OrderHistoryStore:
    """Append-only record of finalized orders."""

    def __init__(self, backend: DocumentStore) -> None:
        self._backend = backend

    def append(self, order: Order) -> Order:
        self._backend.upsert(ORDERS_COLLECTION, order.id, order.model_dump(mode="json"))
        return order

    def get(self, order_id: str) -> Order:
        doc = self._backend.get(ORDERS_COLLECTION, order_id)
        if doc is None:
            raise NotFoundError("Order", order_id)
        return Order.model_validate(doc)

    def find_by_source_batch(self, batch_id: str) -> Order | None:
        for order in self._all():
            if order.source_batch_id == batch_id:
                return order
        return None

    def list(
        self,
        group_key_contains: str | None = None,
        on_date: date | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Order]:
        needle = (group_key_contains or "").strip().lower()
        start_utc = as_utc(start) if start is not None else None
        end_utc = as_utc(end) if end is not None else None

        out: list[Order] = []
        for order in self._all():
            occurred = as_utc(order.occurred_at)
            if needle and needle not in order.group_key.lower():
                continue
            if on_date is not None and occurred.date() != on_date:
                continue
            if start_utc is not None and occurred < start_utc:
                continue
            if end_utc is not None and occurred > end_utc:
                continue
            out.append(order)

        indexed = list(enumerate(out))
        indexed.sort(key=lambda pair: (as_utc(pair[1].occurred_at), pair[0]), reverse=True)
        return [order for _seq, order in indexed]

    def _all(self) -> list[Order]:
        return [Order.model_validate(doc) for doc in self._backend.get_all(ORDERS_COLLECTION)]
