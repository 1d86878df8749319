from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from services.api.app.models.order import Order
from services.api.app.models.pending import PendingBatch
from services.api.app.services.history_store import OrderHistoryStore
from services.api.app.services.orderflow_base import Clock, as_utc, utc_now
from services.api.app.services.pending_store import PendingOrderStore

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = timedelta(hours=24)


class AgedEntryKind(str, Enum):
    ORDER = "ORDER"
    PENDING = "PENDING"


@dataclass(frozen=True, slots=True)
class AgedAlert:
    entry_id: str
    group_key: str
    kind: AgedEntryKind
    timestamp: datetime
    age: timedelta
    age_exceeded: bool = True


def scan_aged_entries(
    orders: Iterable[Order],
    batches: Iterable[PendingBatch],
    now: datetime,
    alerted: frozenset[str] | set[str],
    threshold: timedelta = DEFAULT_THRESHOLD,
) -> tuple[list[AgedAlert], frozenset[str]]:
    """Return alerts for entries older than `threshold` that have not been alerted yet.

    Pure: the caller keeps the returned id set and passes it back on the next scan.
    """

    now = as_utc(now)
    seen = set(alerted)
    alerts: list[AgedAlert] = []

    candidates: list[tuple[str, str, AgedEntryKind, datetime]] = [
        (o.id, o.group_key, AgedEntryKind.ORDER, o.occurred_at) for o in orders
    ]
    candidates += [(b.id, b.group_key, AgedEntryKind.PENDING, b.created_at) for b in batches]

    for entry_id, group_key, kind, timestamp in candidates:
        if entry_id in seen:
            continue
        age = now - as_utc(timestamp)
        if age <= threshold:
            continue
        alerts.append(
            AgedAlert(
                entry_id=entry_id,
                group_key=group_key,
                kind=kind,
                timestamp=as_utc(timestamp),
                age=age,
            )
        )
        seen.add(entry_id)

    return alerts, frozenset(seen)


def threshold_from_env() -> timedelta:
    raw = os.getenv("ORDERFLOW_AGED_THRESHOLD_HOURS", "").strip()
    if not raw:
        return DEFAULT_THRESHOLD
    try:
        hours = float(raw)
    except ValueError as e:
        raise ValueError(f"ORDERFLOW_AGED_THRESHOLD_HOURS must be a number, got {raw!r}") from e
    if hours <= 0:
        raise ValueError(f"ORDERFLOW_AGED_THRESHOLD_HOURS must be positive, got {raw!r}")
    return timedelta(hours=hours)


class AgedEntryMonitor:
    """Holds the set of already-alerted ids for the lifetime of the process."""

    def __init__(
        self,
        pending: PendingOrderStore,
        history: OrderHistoryStore,
        threshold: timedelta = DEFAULT_THRESHOLD,
        clock: Clock = utc_now,
    ) -> None:
        self._pending = pending
        self._history = history
        self.threshold = threshold
        self._clock = clock
        self._alerted: frozenset[str] = frozenset()

    def check(self) -> list[AgedAlert]:
        alerts, self._alerted = scan_aged_entries(
            self._history.list(),
            self._pending.list(),
            now=self._clock(),
            alerted=self._alerted,
            threshold=self.threshold,
        )
        for alert in alerts:
            logger.warning(
                "Aged %s entry id=%s group_key=%s age=%s",
                alert.kind.value.lower(),
                alert.entry_id,
                alert.group_key,
                alert.age,
            )
        return alerts
