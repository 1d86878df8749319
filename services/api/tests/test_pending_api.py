from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(params=["memory", "sql"])
def client(request: pytest.FixtureRequest, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("ORDERFLOW_STORE", request.param)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'orderflow_api.db'}")
    monkeypatch.setenv("ORDERFLOW_DB_AUTO_CREATE", "true")

    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


def _add_product(client: TestClient, name: str, price_cents: int, category: str | None = None) -> dict:
    resp = client.post(
        "/v1/products", json={"name": name, "price_cents": price_cents, "category": category}
    )
    assert resp.status_code == 200
    return resp.json()


def _stage(client: TestClient, items: list[dict], product_id: str, quantity: int) -> list[dict]:
    resp = client.post(
        "/v1/staging/add", json={"items": items, "product_id": product_id, "quantity": quantity}
    )
    assert resp.status_code == 200
    return resp.json()["items"]


def _queue(client: TestClient, group_key: str, items: list[dict]) -> dict:
    resp = client.post("/v1/pending", json={"group_key": group_key, "items": items})
    assert resp.status_code == 200
    return resp.json()


def test_stage_queue_and_deliver(client: TestClient) -> None:
    widget = _add_product(client, "Widget", 500)

    staged = _stage(client, [], widget["id"], 1)
    staged = _stage(client, staged, widget["id"], 1)
    assert staged == [
        {"product_id": widget["id"], "product_name": "Widget", "quantity": 2, "unit_price_cents": 500}
    ]

    card = _queue(client, "Alice", staged)
    assert card["type"] == "QUEUED"
    assert card["total_cents"] == 1000
    batch_id = card["batch_id"]

    pending = client.get("/v1/pending").json()
    assert [b["id"] for b in pending] == [batch_id]
    assert pending[0]["original_total_cents"] == 1000

    done = client.post(f"/v1/pending/{batch_id}/deliver")
    assert done.status_code == 200
    data = done.json()
    assert data["type"] == "RESOLVED"
    assert data["total_cents"] == 1000
    assert data["order_id"]

    assert client.get("/v1/pending").json() == []
    orders = client.get("/v1/orders").json()
    assert [o["id"] for o in orders] == [data["order_id"]]
    assert orders[0]["items"][0]["quantity"] == 2


def test_adjust_then_deliver_records_original_request(client: TestClient) -> None:
    gadget = _add_product(client, "Gadget", 250)
    card = _queue(client, "Bob", _stage(client, [], gadget["id"], 4))
    batch_id = card["batch_id"]

    adjusted = client.post(
        f"/v1/pending/{batch_id}/adjust",
        json={"items": [{"product_id": gadget["id"], "quantity": 1}], "expected_version": 1},
    )
    assert adjusted.status_code == 200
    body = adjusted.json()
    assert body["type"] == "UPDATED"
    assert body["total_cents"] == 250
    assert body["body"]["original_total_cents"] == 1000
    assert body["body"]["version"] == 2
    assert body["summary"] == "Pending quantities for Bob updated."

    stale = client.post(f"/v1/pending/{batch_id}/deliver", json={"expected_version": 1})
    assert stale.status_code == 409

    done = client.post(f"/v1/pending/{batch_id}/deliver", json={"expected_version": 2})
    assert done.status_code == 200
    assert done.json()["total_cents"] == 1000


def test_adjust_that_drops_an_item_says_so(client: TestClient) -> None:
    widget = _add_product(client, "Widget", 500)
    gizmo = _add_product(client, "Gizmo", 100)
    staged = _stage(client, _stage(client, [], widget["id"], 2), gizmo["id"], 1)
    batch_id = _queue(client, "Dana", staged)["batch_id"]

    resp = client.post(
        f"/v1/pending/{batch_id}/adjust",
        json={
            "items": [
                {"product_id": widget["id"], "quantity": 2},
                {"product_id": gizmo["id"], "quantity": 0},
            ]
        },
    )

    card = resp.json()
    assert card["type"] == "UPDATED"
    assert card["summary"] == "Pending items for Dana updated. Some items were cleared."
    assert card["total_cents"] == 1000


def test_adjust_to_zero_clears_batch(client: TestClient) -> None:
    widget = _add_product(client, "Widget", 500)
    batch_id = _queue(client, "Carol", _stage(client, [], widget["id"], 3))["batch_id"]

    resp = client.post(
        f"/v1/pending/{batch_id}/adjust",
        json={"items": [{"product_id": widget["id"], "quantity": 0}]},
    )
    assert resp.status_code == 200
    card = resp.json()
    assert card["type"] == "RESOLVED"
    assert card["title"] == "Order Cleared"

    order = client.get(f"/v1/orders/{card['order_id']}").json()
    assert order["items"][0]["quantity"] == 3
    assert order["source_batch_id"] == batch_id
    assert client.get(f"/v1/pending/{batch_id}").status_code == 404


def test_discard_pending_batch(client: TestClient) -> None:
    widget = _add_product(client, "Widget", 500)
    batch_id = _queue(client, "Dana", _stage(client, [], widget["id"], 1))["batch_id"]

    resp = client.delete(f"/v1/pending/{batch_id}")
    assert resp.status_code == 200
    assert resp.json()["type"] == "DISCARDED"

    assert client.get("/v1/orders").json() == []
    assert client.delete(f"/v1/pending/{batch_id}").status_code == 404


def test_validation_failures_map_to_422(client: TestClient) -> None:
    item = {"product_id": "p1", "product_name": "Widget", "quantity": 1, "unit_price_cents": 500}

    assert client.post("/v1/pending", json={"group_key": "", "items": [item]}).status_code == 422
    assert client.post("/v1/pending", json={"group_key": "Bob", "items": []}).status_code == 422
    assert (
        client.post(
            "/v1/pending", json={"group_key": "Bob", "items": [{**item, "quantity": 0}]}
        ).status_code
        == 422
    )
    assert client.post("/v1/products", json={"name": " ", "price_cents": 1}).status_code == 422


def test_missing_batch_is_404(client: TestClient) -> None:
    assert client.post("/v1/pending/missing-id/deliver").status_code == 404
    assert client.post("/v1/pending/missing-id/adjust", json={"items": []}).status_code == 404


def test_past_orders_filter_by_group_key(client: TestClient) -> None:
    item = {"product_id": "p1", "product_name": "Widget", "quantity": 1, "unit_price_cents": 500}
    client.post("/v1/orders", json={"group_key": "Bakery", "items": [item]})
    client.post("/v1/orders", json={"group_key": "Produce", "items": [item]})

    orders = client.get("/v1/orders", params={"group_key": "bak"}).json()
    assert [o["group_key"] for o in orders] == ["Bakery"]


def test_staging_set_quantity_and_remove(client: TestClient) -> None:
    items = [
        {"product_id": "p1", "product_name": "Widget", "quantity": 2, "unit_price_cents": 500},
        {"product_id": "p2", "product_name": "Gizmo", "quantity": 1, "unit_price_cents": 100},
    ]

    resp = client.post("/v1/staging/set-quantity", json={"items": items, "product_id": "p1", "quantity": 5})
    assert resp.json()["total_cents"] == 2600

    resp = client.post("/v1/staging/set-quantity", json={"items": items, "product_id": "p1", "quantity": 0})
    assert [i["product_id"] for i in resp.json()["items"]] == ["p2"]

    resp = client.post("/v1/staging/remove", json={"items": items, "product_id": "p2"})
    assert resp.json() == {"items": [items[0]], "total_cents": 1000}

    resp = client.post("/v1/staging/add", json={"items": [], "product_id": "missing", "quantity": 1})
    assert resp.status_code == 404


def test_staging_rejects_non_positive_staged_quantities(client: TestClient) -> None:
    widget = _add_product(client, "Widget", 500)
    zero = {"product_id": "zz", "product_name": "Zero", "quantity": 0, "unit_price_cents": 100}
    negative = {"product_id": widget["id"], "product_name": "Widget", "quantity": -5, "unit_price_cents": 500}

    resp = client.post(
        "/v1/staging/set-quantity", json={"items": [zero], "product_id": "zz", "quantity": 3}
    )
    assert resp.status_code == 422

    resp = client.post("/v1/staging/remove", json={"items": [zero, negative], "product_id": "other"})
    assert resp.status_code == 422

    resp = client.post(
        "/v1/staging/add", json={"items": [negative], "product_id": widget["id"], "quantity": 2}
    )
    assert resp.status_code == 422
