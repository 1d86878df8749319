from __future__ import annotations

import logging
from uuid import uuid4

from services.api.app.models.order import LineItem
from services.api.app.models.pending import PendingBatch
from services.api.app.services import line_items
from services.api.app.services.orderflow_base import (
    PENDING_ORDERS_COLLECTION,
    Clock,
    ConflictOrUnavailableError,
    DocumentStore,
    EmptyGroupKeyError,
    NoItemsError,
    NotFoundError,
    utc_now,
)

logger = logging.getLogger(__name__)


class PendingOrderStore:
    """Owns the pending batch collection.

    Originals are captured once in create() and never written again; update() only touches the
    current view.
    """

    def __init__(self, backend: DocumentStore, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock

    def create(self, group_key: str, items: list[LineItem]) -> PendingBatch:
        key = (group_key or "").strip()
        if not key:
            raise EmptyGroupKeyError()
        if not items:
            raise NoItemsError()
        line_items.validate_positive(items)

        merged = line_items.aggregate(items)
        total = line_items.total_cents(merged)
        batch = PendingBatch(
            id=uuid4().hex,
            group_key=key,
            current_items=line_items.deep_copy(merged),
            current_total_cents=total,
            original_items=line_items.deep_copy(merged),
            original_total_cents=total,
            created_at=self._clock(),
        )
        self._save(batch)
        logger.info("Queued pending batch id=%s group_key=%s total_cents=%s", batch.id, key, total)
        return batch

    def get(self, batch_id: str) -> PendingBatch:
        doc = self._backend.get(PENDING_ORDERS_COLLECTION, batch_id)
        if doc is None:
            raise NotFoundError("Pending batch", batch_id)
        return PendingBatch.model_validate(doc)

    def find(self, batch_id: str) -> PendingBatch | None:
        doc = self._backend.get(PENDING_ORDERS_COLLECTION, batch_id)
        return PendingBatch.model_validate(doc) if doc is not None else None

    def update(
        self,
        batch_id: str,
        new_current_items: list[LineItem],
        expected_version: int | None = None,
    ) -> PendingBatch:
        batch = self.get(batch_id)
        if expected_version is not None and expected_version != batch.version:
            raise ConflictOrUnavailableError(
                f"Pending batch {batch_id} changed: expected version {expected_version}, "
                f"found {batch.version}"
            )

        current = line_items.deep_copy(new_current_items)
        updated = batch.model_copy(
            update={
                "current_items": current,
                "current_total_cents": line_items.total_cents(current),
                "version": batch.version + 1,
            }
        )
        self._save(updated)
        return updated

    def remove(self, batch_id: str) -> None:
        if not self._backend.delete(PENDING_ORDERS_COLLECTION, batch_id):
            raise NotFoundError("Pending batch", batch_id)

    def list(self) -> list[PendingBatch]:
        docs = self._backend.get_all(PENDING_ORDERS_COLLECTION)
        indexed = [(PendingBatch.model_validate(doc), seq) for seq, doc in enumerate(docs)]
        # Newest first; for identical timestamps the later insert comes first.
        indexed.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
        return [batch for batch, _seq in indexed]

    def _save(self, batch: PendingBatch) -> None:
        self._backend.upsert(PENDING_ORDERS_COLLECTION, batch.id, batch.model_dump(mode="json"))
