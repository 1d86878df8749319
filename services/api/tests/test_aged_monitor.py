from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from services.api.app.models.order import LineItem, Order
from services.api.app.services.aged_monitor import (
    AgedEntryKind,
    AgedEntryMonitor,
    scan_aged_entries,
    threshold_from_env,
)
from services.api.app.services.history_store import OrderHistoryStore
from services.api.app.services.pending_store import PendingOrderStore
from services.api.app.services.store import InMemoryDocumentStore

NOW = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


def _order(order_id: str, occurred_at: datetime) -> Order:
    return Order(
        id=order_id,
        group_key="Alice",
        items=[LineItem(product_id="p1", product_name="Widget", quantity=1, unit_price_cents=500)],
        total_cents=500,
        occurred_at=occurred_at,
    )


def test_old_order_alerts_only_once() -> None:
    orders = [_order("o1", NOW - timedelta(hours=25))]

    first, alerted = scan_aged_entries(orders, [], now=NOW, alerted=frozenset())
    second, alerted_again = scan_aged_entries(orders, [], now=NOW, alerted=alerted)

    assert [(a.entry_id, a.kind, a.age_exceeded) for a in first] == [("o1", AgedEntryKind.ORDER, True)]
    assert second == []
    assert alerted_again == alerted == frozenset({"o1"})


def test_scan_does_not_mutate_input_set() -> None:
    seen: set[str] = set()
    scan_aged_entries([_order("o1", NOW - timedelta(days=2))], [], now=NOW, alerted=seen)
    assert seen == set()


def test_entries_within_threshold_are_ignored() -> None:
    orders = [_order("fresh", NOW - timedelta(hours=23)), _order("edge", NOW - timedelta(hours=24))]

    alerts, alerted = scan_aged_entries(orders, [], now=NOW, alerted=frozenset())

    assert alerts == []
    assert alerted == frozenset()


def test_offset_timestamps_are_aged_and_reported_in_utc() -> None:
    plus_five = timezone(timedelta(hours=5))
    local_time = (NOW - timedelta(hours=25)).astimezone(plus_five)

    alerts, _ = scan_aged_entries([_order("o1", local_time)], [], now=NOW.replace(tzinfo=None), alerted=frozenset())

    assert len(alerts) == 1
    assert alerts[0].age == timedelta(hours=25)
    assert alerts[0].timestamp == NOW - timedelta(hours=25)
    assert alerts[0].timestamp.utcoffset() == timedelta(0)


def test_monitor_covers_pending_batches_and_orders() -> None:
    backend = InMemoryDocumentStore()
    clock_now = [NOW - timedelta(hours=30)]
    pending = PendingOrderStore(backend, clock=lambda: clock_now[0])
    history = OrderHistoryStore(backend)

    batch = pending.create(
        "Bakery", [LineItem(product_id="p1", product_name="Bread", quantity=2, unit_price_cents=300)]
    )
    history.append(_order("o1", NOW - timedelta(hours=48)))
    history.append(_order("o2", NOW - timedelta(hours=1)))

    clock_now[0] = NOW
    monitor = AgedEntryMonitor(pending, history, clock=lambda: clock_now[0])

    alerts = monitor.check()
    assert {(a.entry_id, a.kind) for a in alerts} == {
        ("o1", AgedEntryKind.ORDER),
        (batch.id, AgedEntryKind.PENDING),
    }
    assert monitor.check() == []

    # A newly aged entry still fires.
    clock_now[0] = NOW + timedelta(hours=24)
    assert [a.entry_id for a in monitor.check()] == ["o2"]


def test_threshold_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ORDERFLOW_AGED_THRESHOLD_HOURS", raising=False)
    assert threshold_from_env() == timedelta(hours=24)

    monkeypatch.setenv("ORDERFLOW_AGED_THRESHOLD_HOURS", "6")
    assert threshold_from_env() == timedelta(hours=6)

    monkeypatch.setenv("ORDERFLOW_AGED_THRESHOLD_HOURS", "soon")
    with pytest.raises(ValueError, match="ORDERFLOW_AGED_THRESHOLD_HOURS"):
        threshold_from_env()
