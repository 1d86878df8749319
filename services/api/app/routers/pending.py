from __future__ import annotations

from fastapi import APIRouter, Depends
from packages.shared.schemas.card_v1 import (
    CardActionTypeV1,
    CardActionV1,
    CardTypeV1,
    CardV1,
)
from services.api.app.db.deps import get_context
from services.api.app.models.order import Order
from services.api.app.models.pending import (
    PendingAdjustRequest,
    PendingBatch,
    PendingCreateRequest,
    PendingDeliverRequest,
)
from services.api.app.routers.http_errors import raise_orderflow_http_error
from services.api.app.services.context import OrderFlowContext
from services.api.app.services.orderflow_base import OrderFlowError, Resolved, Updated

router = APIRouter()


@router.get("/v1/pending", response_model=list[PendingBatch])
def list_pending(ctx: OrderFlowContext = Depends(get_context)) -> list[PendingBatch]:
    return ctx.pending.list()


@router.post("/v1/pending", response_model=CardV1)
def create_pending(payload: PendingCreateRequest, ctx: OrderFlowContext = Depends(get_context)) -> CardV1:
    try:
        batch = ctx.engine.create_batch(payload.group_key, payload.items)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    return _batch_card(
        batch,
        card_type=CardTypeV1.QUEUED,
        title="Order Batch Added to Queue",
        summary=f"Batch for {batch.group_key} added to pending orders.",
    )


@router.get("/v1/pending/{batch_id}", response_model=PendingBatch)
def get_pending(batch_id: str, ctx: OrderFlowContext = Depends(get_context)) -> PendingBatch:
    try:
        return ctx.pending.get(batch_id)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)


@router.post("/v1/pending/{batch_id}/deliver", response_model=CardV1)
def deliver_pending(
    batch_id: str,
    payload: PendingDeliverRequest | None = None,
    ctx: OrderFlowContext = Depends(get_context),
) -> CardV1:
    expected_version = payload.expected_version if payload is not None else None
    try:
        order = ctx.engine.confirm_full_delivery(batch_id, expected_version=expected_version)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    return _order_card(
        order,
        batch_id=batch_id,
        title="Order Fully Delivered!",
        summary=f"Order for {order.group_key} marked as delivered and saved to past orders.",
    )


@router.post("/v1/pending/{batch_id}/adjust", response_model=CardV1)
def adjust_pending(
    batch_id: str,
    payload: PendingAdjustRequest,
    ctx: OrderFlowContext = Depends(get_context),
) -> CardV1:
    try:
        result = ctx.engine.apply_adjustment(
            batch_id, payload.items, expected_version=payload.expected_version
        )
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    if isinstance(result, Resolved):
        return _order_card(
            result.order,
            batch_id=batch_id,
            title="Order Cleared",
            summary=(
                f"All items in {result.order.group_key}'s order were set to 0 pending. "
                "The order has been cleared from the queue."
            ),
        )

    if isinstance(result, Updated):
        summary = f"Pending quantities for {result.batch.group_key} updated."
        if result.cleared_count > 0:
            summary = f"Pending items for {result.batch.group_key} updated. Some items were cleared."
        return _batch_card(
            result.batch,
            card_type=CardTypeV1.UPDATED,
            title="Pending Order Updated",
            summary=summary,
        )

    return CardV1(
        type=CardTypeV1.NOOP,
        title="No Changes",
        summary="This order has no items to process.",
        group_key=result.group_key,
        batch_id=result.batch_id,
    )


@router.delete("/v1/pending/{batch_id}", response_model=CardV1)
def discard_pending(batch_id: str, ctx: OrderFlowContext = Depends(get_context)) -> CardV1:
    try:
        batch = ctx.engine.remove_pending_batch(batch_id)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    return CardV1(
        type=CardTypeV1.DISCARDED,
        title="Pending Order Removed",
        summary=f"Pending order for {batch.group_key} has been removed.",
        group_key=batch.group_key,
        batch_id=batch.id,
        total_cents=batch.current_total_cents,
    )


def _batch_card(batch: PendingBatch, *, card_type: CardTypeV1, title: str, summary: str) -> CardV1:
    return CardV1(
        type=card_type,
        title=title,
        summary=summary,
        group_key=batch.group_key,
        batch_id=batch.id,
        total_cents=batch.current_total_cents,
        body=batch.model_dump(mode="json"),
        actions=[
            CardActionV1(
                type=CardActionTypeV1.DELIVER,
                label="Mark Fully Delivered & Save",
                payload={"expected_version": batch.version},
            ),
            CardActionV1(
                type=CardActionTypeV1.ADJUST,
                label="Update Pending Order",
                payload={"expected_version": batch.version},
            ),
            CardActionV1(type=CardActionTypeV1.DISCARD, label="Remove", payload={}),
        ],
    )


def _order_card(order: Order, *, batch_id: str, title: str, summary: str) -> CardV1:
    return CardV1(
        type=CardTypeV1.RESOLVED,
        title=title,
        summary=summary,
        group_key=order.group_key,
        batch_id=batch_id,
        order_id=order.id,
        total_cents=order.total_cents,
        body=order.model_dump(mode="json"),
    )
