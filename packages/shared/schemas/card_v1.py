"""Shared outcome card payload schema (v1).

Every pending-queue mutation answers with one of these cards. Clients render the title and
summary as a notification and use the ids for follow-up actions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CardTypeV1(str, Enum):
    QUEUED = "QUEUED"
    UPDATED = "UPDATED"
    RESOLVED = "RESOLVED"
    DISCARDED = "DISCARDED"
    NOOP = "NOOP"


class CardActionTypeV1(str, Enum):
    DELIVER = "DELIVER"
    ADJUST = "ADJUST"
    DISCARD = "DISCARD"


class CardActionV1(BaseModel):
    type: CardActionTypeV1
    label: str
    payload: dict[str, Any] = Field(default_factory=dict)


class CardV1(BaseModel):
    version: str = "1"
    type: CardTypeV1

    title: str
    summary: str

    group_key: str

    # Server-side IDs to support follow-up actions.
    batch_id: str | None = None
    order_id: str | None = None

    total_cents: int | None = None

    # Batch or order snapshot for rendering.
    body: dict[str, Any] = Field(default_factory=dict)

    actions: list[CardActionV1] = Field(default_factory=list, max_length=4)
    warnings: list[str] = Field(default_factory=list, max_length=8)
