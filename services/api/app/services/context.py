from __future__ import annotations

from dataclasses import dataclass

from services.api.app.services.aged_monitor import AgedEntryMonitor, threshold_from_env
from services.api.app.services.catalog import CatalogStore
from services.api.app.services.event_log import EventRecorder
from services.api.app.services.history_store import OrderHistoryStore
from services.api.app.services.orderflow_base import Clock, DocumentStore, utc_now
from services.api.app.services.pending_store import PendingOrderStore
from services.api.app.services.reconciliation import ReconciliationEngine
from services.api.app.services.store_factory import get_document_store


@dataclass
class OrderFlowContext:
    backend: DocumentStore
    events: EventRecorder
    catalog: CatalogStore
    pending: PendingOrderStore
    history: OrderHistoryStore
    engine: ReconciliationEngine
    monitor: AgedEntryMonitor


def build_context(backend: DocumentStore | None = None, clock: Clock = utc_now) -> OrderFlowContext:
    """Construct one session's stores and engine around a single backend."""

    if backend is None:
        backend = get_document_store()

    events = EventRecorder(backend, clock=clock)
    pending = PendingOrderStore(backend, clock=clock)
    history = OrderHistoryStore(backend)
    return OrderFlowContext(
        backend=backend,
        events=events,
        catalog=CatalogStore(backend, events=events),
        pending=pending,
        history=history,
        engine=ReconciliationEngine(pending, history, events=events, clock=clock),
        monitor=AgedEntryMonitor(pending, history, threshold=threshold_from_env(), clock=clock),
    )
