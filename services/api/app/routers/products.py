from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from services.api.app.db.deps import get_context
from services.api.app.models.product import (
    Product,
    ProductInput,
    StagingAddRequest,
    StagingRemoveRequest,
    StagingResponse,
    StagingSetQuantityRequest,
)
from services.api.app.routers.http_errors import raise_orderflow_http_error
from services.api.app.services import line_items
from services.api.app.services.context import OrderFlowContext
from services.api.app.services.orderflow_base import OrderFlowError

router = APIRouter()


@router.get("/v1/products", response_model=list[Product])
def list_products(ctx: OrderFlowContext = Depends(get_context)) -> list[Product]:
    return ctx.catalog.list_products()


@router.post("/v1/products", response_model=Product)
def add_product(payload: ProductInput, ctx: OrderFlowContext = Depends(get_context)) -> Product:
    try:
        return ctx.catalog.add_product(
            name=payload.name,
            price_cents=payload.price_cents,
            description=payload.description,
            category=payload.category,
        )
    except OrderFlowError as e:
        raise_orderflow_http_error(e)


@router.get("/v1/products/{product_id}", response_model=Product)
def get_product(product_id: str, ctx: OrderFlowContext = Depends(get_context)) -> Product:
    product = ctx.catalog.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.put("/v1/products/{product_id}", response_model=Product)
def update_product(
    product_id: str, payload: ProductInput, ctx: OrderFlowContext = Depends(get_context)
) -> Product:
    try:
        return ctx.catalog.update_product(Product(id=product_id, **payload.model_dump()))
    except OrderFlowError as e:
        raise_orderflow_http_error(e)


@router.delete("/v1/products/{product_id}", status_code=204)
def delete_product(product_id: str, ctx: OrderFlowContext = Depends(get_context)) -> Response:
    try:
        ctx.catalog.delete_product(product_id)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)
    return Response(status_code=204)


@router.get("/v1/categories", response_model=list[str])
def list_categories(ctx: OrderFlowContext = Depends(get_context)) -> list[str]:
    return ctx.catalog.list_categories()


@router.post("/v1/staging/add", response_model=StagingResponse)
def stage_item(payload: StagingAddRequest, ctx: OrderFlowContext = Depends(get_context)) -> StagingResponse:
    product = ctx.catalog.get_product(payload.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    try:
        line_items.validate_positive(payload.items)
        items = line_items.stage_product(payload.items, product, payload.quantity)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)
    return StagingResponse(items=items, total_cents=line_items.total_cents(items))


@router.post("/v1/staging/set-quantity", response_model=StagingResponse)
def set_staged_quantity(payload: StagingSetQuantityRequest) -> StagingResponse:
    try:
        line_items.validate_positive(payload.items)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    items = line_items.set_quantity(payload.items, payload.product_id, payload.quantity)
    return StagingResponse(items=items, total_cents=line_items.total_cents(items))


@router.post("/v1/staging/remove", response_model=StagingResponse)
def unstage_item(payload: StagingRemoveRequest) -> StagingResponse:
    try:
        line_items.validate_positive(payload.items)
    except OrderFlowError as e:
        raise_orderflow_http_error(e)

    items = line_items.remove_item(payload.items, payload.product_id)
    return StagingResponse(items=items, total_cents=line_items.total_cents(items))
