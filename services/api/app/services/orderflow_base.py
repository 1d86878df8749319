from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from services.api.app.models.order import Order
from services.api.app.models.pending import PendingBatch

PENDING_ORDERS_COLLECTION = "pendingOrders"
ORDERS_COLLECTION = "orders"
PRODUCTS_COLLECTION = "products"
EVENTS_COLLECTION = "events"


class OrderFlowError(Exception):
    """Base class for order flow errors."""


class EmptyGroupKeyError(OrderFlowError):
    def __init__(self) -> None:
        super().__init__("Group key (customer or category) is required")


class NoItemsError(OrderFlowError):
    def __init__(self) -> None:
        super().__init__("At least one line item is required")


class InvalidQuantityError(OrderFlowError):
    def __init__(self, product_id: str, quantity: int, reason: str = "must be greater than 0") -> None:
        super().__init__(f"Invalid quantity {quantity} for product {product_id}: {reason}")
        self.product_id = product_id
        self.quantity = quantity


class InvalidProductError(OrderFlowError):
    """Product fields failed validation."""


class NotFoundError(OrderFlowError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class NothingToDeliverError(OrderFlowError):
    def __init__(self, batch_id: str) -> None:
        super().__init__(f"Pending batch {batch_id} has no original items to deliver")
        self.batch_id = batch_id


class ConflictOrUnavailableError(OrderFlowError):
    """The backing store could not complete the write, or the entity changed underneath us."""


@dataclass(frozen=True, slots=True)
class Resolved:
    order: Order


@dataclass(frozen=True, slots=True)
class Updated:
    batch: PendingBatch
    previous_item_count: int

    @property
    def cleared_count(self) -> int:
        return self.previous_item_count - len(self.batch.current_items)


@dataclass(frozen=True, slots=True)
class NoOp:
    batch_id: str
    group_key: str


AdjustmentResult = Resolved | Updated | NoOp

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DocumentStore(Protocol):
    """Durable mapping from entity id to JSON document, grouped by collection name.

    get_all returns documents in insertion order. Upserting an existing id keeps its position.
    """

    def get_all(self, collection: str) -> list[dict[str, Any]]: ...

    def get(self, collection: str, entity_id: str) -> dict[str, Any] | None: ...

    def upsert(self, collection: str, entity_id: str, document: dict[str, Any]) -> None: ...

    def delete(self, collection: str, entity_id: str) -> bool: ...

    def subscribe(
        self, collection: str, on_change: Callable[[list[dict[str, Any]]], None]
    ) -> Callable[[], None]: ...
