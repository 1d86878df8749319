from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field
from services.api.app.models.order import LineItem


class PendingBatch(BaseModel):
    id: str
    group_key: str

    # Editable view of what is still undelivered.
    current_items: list[LineItem]
    current_total_cents: int

    # Snapshot taken at creation. Never mutated afterwards.
    original_items: list[LineItem]
    original_total_cents: int

    created_at: datetime
    version: int = 1


class PendingCreateRequest(BaseModel):
    group_key: str
    items: list[LineItem] = Field(default_factory=list)


class AdjustedQuantity(BaseModel):
    product_id: str
    quantity: int


class PendingAdjustRequest(BaseModel):
    items: list[AdjustedQuantity] = Field(default_factory=list)
    expected_version: int | None = None


class PendingDeliverRequest(BaseModel):
    expected_version: int | None = None
