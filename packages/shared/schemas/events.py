"""Shared event schema (v1).

The backend stores an append-only event log of pending-batch and order lifecycle changes.
Clients can consume these events to render an audit trail.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityTypeV1(str, Enum):
    PENDING_BATCH = "PendingBatch"
    ORDER = "Order"
    PRODUCT = "Product"


class EventTypeV1(str, Enum):
    BATCH_CREATED = "BATCH_CREATED"
    BATCH_ADJUSTED = "BATCH_ADJUSTED"
    BATCH_RESOLVED = "BATCH_RESOLVED"
    BATCH_DISCARDED = "BATCH_DISCARDED"
    BATCH_RECOVERED = "BATCH_RECOVERED"
    ORDER_RECORDED = "ORDER_RECORDED"
    PRODUCT_ADDED = "PRODUCT_ADDED"
    PRODUCT_UPDATED = "PRODUCT_UPDATED"
    PRODUCT_DELETED = "PRODUCT_DELETED"


class EventV1(BaseModel):
    id: str

    entity_type: EntityTypeV1
    entity_id: str

    event_type: EventTypeV1
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
