"""Line item aggregation for staging lists and pending batches.

Every function returns a new list and leaves its input untouched. A line item never carries a
quantity of zero or less: setting a non-positive quantity removes the item instead.
"""

from __future__ import annotations

from services.api.app.models.order import LineItem
from services.api.app.models.product import Product
from services.api.app.services.orderflow_base import InvalidQuantityError


def add_or_increment(
    items: list[LineItem],
    product_id: str,
    product_name: str,
    unit_price_cents: int,
    quantity: int,
) -> list[LineItem]:
    if quantity <= 0:
        raise InvalidQuantityError(product_id, quantity)

    out: list[LineItem] = []
    found = False
    for item in items:
        if item.product_id == product_id:
            out.append(item.model_copy(update={"quantity": item.quantity + quantity}))
            found = True
        else:
            out.append(item.model_copy())

    if not found:
        out.append(
            LineItem(
                product_id=product_id,
                product_name=product_name,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
            )
        )
    return out


def stage_product(items: list[LineItem], product: Product, quantity: int) -> list[LineItem]:
    """Stage a catalog product, snapshotting its current name and price."""
    return add_or_increment(items, product.id, product.name, product.price_cents, quantity)


def remove_item(items: list[LineItem], product_id: str) -> list[LineItem]:
    return [item.model_copy() for item in items if item.product_id != product_id]


def set_quantity(items: list[LineItem], product_id: str, new_quantity: int) -> list[LineItem]:
    if new_quantity <= 0:
        return remove_item(items, product_id)

    return [
        item.model_copy(update={"quantity": new_quantity})
        if item.product_id == product_id
        else item.model_copy()
        for item in items
    ]


def drop_non_positive(items: list[LineItem]) -> list[LineItem]:
    return [item.model_copy() for item in items if item.quantity > 0]


def aggregate(items: list[LineItem]) -> list[LineItem]:
    """Merge duplicate product ids by summing quantities.

    First-seen order wins, and so do the first-seen name and price.
    """

    merged: dict[str, LineItem] = {}
    for item in items:
        existing = merged.get(item.product_id)
        if existing is None:
            merged[item.product_id] = item.model_copy()
        else:
            merged[item.product_id] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
    return list(merged.values())


def total_cents(items: list[LineItem]) -> int:
    return sum(item.unit_price_cents * item.quantity for item in items)


def validate_positive(items: list[LineItem]) -> None:
    for item in items:
        if item.quantity <= 0:
            raise InvalidQuantityError(item.product_id, item.quantity)


def deep_copy(items: list[LineItem]) -> list[LineItem]:
    return [item.model_copy(deep=True) for item in items]
