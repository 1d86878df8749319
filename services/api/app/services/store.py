from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ChangeListener = Callable[[list[dict[str, Any]]], None]


class InMemoryDocumentStore:
    """Process-lifetime document store. Default backend for tests and local dev."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._listeners: dict[str, list[ChangeListener]] = {}
        self._lock = threading.RLock()

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            docs = self._collections.get(collection, {})
            return [copy.deepcopy(doc) for doc in docs.values()]

    def get(self, collection: str, entity_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._collections.get(collection, {}).get(entity_id)
            return copy.deepcopy(doc) if doc is not None else None

    def upsert(self, collection: str, entity_id: str, document: dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[entity_id] = copy.deepcopy(document)
        self._notify(collection)

    def delete(self, collection: str, entity_id: str) -> bool:
        with self._lock:
            removed = self._collections.get(collection, {}).pop(entity_id, None)
        if removed is None:
            return False
        self._notify(collection)
        return True

    def subscribe(self, collection: str, on_change: ChangeListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(collection, []).append(on_change)

        def _unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(collection, [])
                if on_change in listeners:
                    listeners.remove(on_change)

        return _unsubscribe

    def _notify(self, collection: str) -> None:
        with self._lock:
            listeners = list(self._listeners.get(collection, []))
        if not listeners:
            return

        snapshot = self.get_all(collection)
        for listener in listeners:
            try:
                listener(copy.deepcopy(snapshot))
            except Exception:
                logger.exception("Change listener failed for collection=%s", collection)
