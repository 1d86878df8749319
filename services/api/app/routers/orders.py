from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends
from services.api.app.db.deps import get_context
from services.api.app.models.order import DirectOrderRequest, Order
from services.api.app.routers.http_errors import raise_orderflow_http_error
from services.api.app.services.context import OrderFlowContext
from services.api.app.services.orderflow_base import OrderFlowError

router = APIRouter()


@router.get("/v1/orders", response_model=list[Order])
def list_orders(
    group_key: str | None = None,
    on_date: date | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    ctx: OrderFlowContext = Depends(get_context),
) -> list[Order]:
    return ctx.history.list(group_key_contains=group_key, on_date=on_date, start=start, end=end)


@router.post("/v1/orders", response_model=Order)
def record_order(payload: DirectOrderRequest, ctx: OrderFlowContext = Depends(get_context)) -> Order:
    try:
        return ctx.engine.record_direct_order(payload.group_key, payload.items)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)


@router.get("/v1/orders/{order_id}", response_model=Order)
def get_order(order_id: str, ctx: OrderFlowContext = Depends(get_context)) -> Order:
    try:
        return ctx.history.get(order_id)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)
