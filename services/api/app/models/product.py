from __future__ import annotations

from pydantic import BaseModel, Field
from services.api.app.models.order import LineItem


class Product(BaseModel):
    id: str
    name: str
    price_cents: int
    description: str | None = None
    category: str | None = None


class ProductInput(BaseModel):
    name: str
    price_cents: int
    description: str | None = None
    category: str | None = None


class StagingAddRequest(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    product_id: str
    quantity: int = 1


class StagingSetQuantityRequest(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    product_id: str
    quantity: int


class StagingRemoveRequest(BaseModel):
    items: list[LineItem] = Field(default_factory=list)
    product_id: str


class StagingResponse(BaseModel):
    items: list[LineItem]
    total_cents: int
