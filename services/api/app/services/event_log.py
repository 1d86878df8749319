from __future__ import annotations

from typing import Any
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1, EventV1
from services.api.app.services.orderflow_base import (
    EVENTS_COLLECTION,
    Clock,
    DocumentStore,
    utc_now,
)


class EventRecorder:
    def __init__(self, backend: DocumentStore, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock

    def record(
        self,
        *,
        entity_type: EntityTypeV1,
        entity_id: str,
        event_type: EventTypeV1,
        payload: dict[str, Any] | None = None,
    ) -> EventV1:
        event = EventV1(
            id=uuid4().hex,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            payload=payload or {},
            created_at=self._clock().isoformat(),
        )
        self._backend.upsert(EVENTS_COLLECTION, event.id, event.model_dump(mode="json"))
        return event

    def list(self, entity_id: str | None = None, limit: int = 200) -> list[EventV1]:
        events = [EventV1.model_validate(doc) for doc in self._backend.get_all(EVENTS_COLLECTION)]
        if entity_id is not None:
            events = [e for e in events if e.entity_id == entity_id]
        # Insertion order is chronological.
        events.reverse()
        return events[:limit]
