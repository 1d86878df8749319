from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price_cents: int = Field(..., ge=0)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


class Order(BaseModel):
    id: str
    group_key: str
    items: list[LineItem]
    total_cents: int
    occurred_at: datetime

    # Pending batch this order resolved. None for orders saved without a pending stage.
    source_batch_id: str | None = None


class DirectOrderRequest(BaseModel):
    group_key: str
    items: list[LineItem] = Field(default_factory=list)
