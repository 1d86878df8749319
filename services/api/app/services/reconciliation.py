"""Pending batch reconciliation.

A batch is resolved into a historical order either by confirming full delivery or by adjusting
every pending quantity down to zero. In both cases the order records the batch's *original*
items and total, not whatever was still pending.

Resolution is two writes: append the order, then remove the batch. If the process dies between
them, the batch survives next to its order; recover_interrupted_resolutions() cleans that up.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.api.app.models.order import LineItem, Order
from services.api.app.models.pending import PendingBatch
from services.api.app.services import line_items
from services.api.app.services.event_log import EventRecorder
from services.api.app.services.history_store import OrderHistoryStore
from services.api.app.services.orderflow_base import (
    AdjustmentResult,
    Clock,
    ConflictOrUnavailableError,
    EmptyGroupKeyError,
    InvalidQuantityError,
    NoItemsError,
    NoOp,
    NothingToDeliverError,
    OrderFlowError,
    Resolved,
    Updated,
    utc_now,
)
from services.api.app.services.pending_store import PendingOrderStore

logger = logging.getLogger(__name__)


class QuantityEdit(Protocol):
    product_id: str
    quantity: int


@dataclass(slots=True)
class _BatchLock:
    # Dropped from the map once no caller holds or waits on it.
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class ReconciliationEngine:
    def __init__(
        self,
        pending: PendingOrderStore,
        history: OrderHistoryStore,
        events: EventRecorder | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._pending = pending
        self._history = history
        self._events = events
        self._clock = clock

        self._locks: dict[str, _BatchLock] = {}
        self._locks_guard = threading.Lock()

    def confirm_full_delivery(self, batch_id: str, expected_version: int | None = None) -> Order:
        with self._batch_lock(batch_id):
            batch = self._pending.get(batch_id)
            _check_version(batch, expected_version)

            if not batch.original_items:
                raise NothingToDeliverError(batch_id)

            order = self._resolve(batch)

        logger.info(
            "Delivered pending batch id=%s as order id=%s total_cents=%s",
            batch_id,
            order.id,
            order.total_cents,
        )
        return order

    def apply_adjustment(
        self,
        batch_id: str,
        edited_items: Sequence[QuantityEdit],
        expected_version: int | None = None,
    ) -> AdjustmentResult:
        with self._batch_lock(batch_id):
            batch = self._pending.get(batch_id)
            _check_version(batch, expected_version)

            valid_items = _valid_items(batch, edited_items)

            if not valid_items and batch.original_items:
                order = self._resolve(batch)
                logger.info("Pending batch id=%s zeroed out; recorded order id=%s", batch_id, order.id)
                return Resolved(order=order)

            if valid_items:
                updated = self._pending.update(batch_id, valid_items)
                self._record(
                    EntityTypeV1.PENDING_BATCH,
                    batch_id,
                    EventTypeV1.BATCH_ADJUSTED,
                    {
                        "previous_total_cents": batch.current_total_cents,
                        "current_total_cents": updated.current_total_cents,
                        "version": updated.version,
                    },
                )
                logger.info(
                    "Adjusted pending batch id=%s total_cents=%s->%s",
                    batch_id,
                    batch.current_total_cents,
                    updated.current_total_cents,
                )
                return Updated(batch=updated, previous_item_count=len(batch.current_items))

            return NoOp(batch_id=batch_id, group_key=batch.group_key)

    def remove_pending_batch(self, batch_id: str) -> PendingBatch:
        """Discard a batch without recording an order. The original request is lost."""
        with self._batch_lock(batch_id):
            batch = self._pending.get(batch_id)
            self._pending.remove(batch_id)

        self._record(
            EntityTypeV1.PENDING_BATCH,
            batch_id,
            EventTypeV1.BATCH_DISCARDED,
            {"group_key": batch.group_key, "current_total_cents": batch.current_total_cents},
        )
        logger.info("Discarded pending batch id=%s group_key=%s", batch_id, batch.group_key)
        return batch

    def create_batch(self, group_key: str, items: list[LineItem]) -> PendingBatch:
        batch = self._pending.create(group_key, items)
        self._record(
            EntityTypeV1.PENDING_BATCH,
            batch.id,
            EventTypeV1.BATCH_CREATED,
            {"group_key": batch.group_key, "original_total_cents": batch.original_total_cents},
        )
        return batch

    def record_direct_order(self, group_key: str, items: list[LineItem]) -> Order:
        """Save an order straight to history, skipping the pending stage."""
        key = (group_key or "").strip()
        if not key:
            raise EmptyGroupKeyError()
        if not items:
            raise NoItemsError()
        line_items.validate_positive(items)

        merged = line_items.aggregate(items)
        order = Order(
            id=uuid4().hex,
            group_key=key,
            items=merged,
            total_cents=line_items.total_cents(merged),
            occurred_at=self._clock(),
        )
        self._history.append(order)
        self._record(
            EntityTypeV1.ORDER,
            order.id,
            EventTypeV1.ORDER_RECORDED,
            {"group_key": key, "total_cents": order.total_cents},
        )
        logger.info("Recorded direct order id=%s group_key=%s", order.id, key)
        return order

    def recover_interrupted_resolutions(self) -> list[str]:
        """Remove pending batches whose order was already appended.

        Returns the ids of the batches removed.
        """

        resolved_ids = {
            order.source_batch_id for order in self._history.list() if order.source_batch_id
        }

        recovered: list[str] = []
        for batch in self._pending.list():
            if batch.id not in resolved_ids:
                continue
            with self._batch_lock(batch.id):
                if self._pending.find(batch.id) is None:
                    continue
                self._pending.remove(batch.id)
            recovered.append(batch.id)
            self._record(EntityTypeV1.PENDING_BATCH, batch.id, EventTypeV1.BATCH_RECOVERED, {})

        if recovered:
            logger.warning("Removed %d pending batches left behind by interrupted resolutions", len(recovered))
        return recovered

    def _resolve(self, batch: PendingBatch) -> Order:
        order = Order(
            id=uuid4().hex,
            group_key=batch.group_key,
            items=line_items.deep_copy(batch.original_items),
            total_cents=batch.original_total_cents,
            occurred_at=self._clock(),
            source_batch_id=batch.id,
        )
        self._history.append(order)
        self._pending.remove(batch.id)

        self._record(
            EntityTypeV1.PENDING_BATCH,
            batch.id,
            EventTypeV1.BATCH_RESOLVED,
            {
                "order_id": order.id,
                "original_total_cents": batch.original_total_cents,
                "remaining_total_cents": batch.current_total_cents,
            },
        )
        return order

    @contextmanager
    def _batch_lock(self, batch_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(batch_id)
            if entry is None:
                entry = self._locks[batch_id] = _BatchLock()
            entry.holders += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[batch_id]

    def _record(
        self,
        entity_type: EntityTypeV1,
        entity_id: str,
        event_type: EventTypeV1,
        payload: dict[str, Any],
    ) -> None:
        if self._events is None:
            return
        try:
            self._events.record(
                entity_type=entity_type,
                entity_id=entity_id,
                event_type=event_type,
                payload=payload,
            )
        except OrderFlowError:
            # The mutation is already committed at this point.
            logger.exception("Failed to record %s for %s", event_type.value, entity_id)


def _check_version(batch: PendingBatch, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != batch.version:
        raise ConflictOrUnavailableError(
            f"Pending batch {batch.id} changed: expected version {expected_version}, "
            f"found {batch.version}"
        )


def _valid_items(batch: PendingBatch, edited_items: Sequence[QuantityEdit]) -> list[LineItem]:
    """Apply edited quantities to the batch's current items.

    Names and prices always come from the stored items. Edits may only lower quantities of
    products already pending; non-positive quantities drop the product.
    """

    current = {item.product_id: item for item in batch.current_items}

    edits: dict[str, int] = {}
    for edit in edited_items:
        pending_item = current.get(edit.product_id)
        if pending_item is None:
            raise InvalidQuantityError(edit.product_id, edit.quantity, "product is not in this batch")
        if edit.quantity > pending_item.quantity:
            raise InvalidQuantityError(
                edit.product_id,
                edit.quantity,
                f"exceeds pending quantity {pending_item.quantity}",
            )
        edits[edit.product_id] = edit.quantity

    edited = [
        item.model_copy(update={"quantity": edits[item.product_id]})
        for item in batch.current_items
        if item.product_id in edits
    ]
    return line_items.drop_non_positive(edited)
