from __future__ import annotations

import os

from services.api.app.services.orderflow_base import DocumentStore
from services.api.app.services.store import InMemoryDocumentStore


def get_document_store() -> DocumentStore:
    """Select a persistence backend based on env vars.

    Defaults to the in-memory store so tests and local dev are deterministic unless explicitly
    configured otherwise.
    """

    mode = os.getenv("ORDERFLOW_STORE", "memory").strip().lower()

    if mode == "memory":
        return InMemoryDocumentStore()

    if mode == "sql":
        from services.api.app.db.init_db import init_db
        from services.api.app.services.sql_store import SqlDocumentStore

        init_db()
        return SqlDocumentStore()

    raise ValueError(f"Unknown ORDERFLOW_STORE={mode!r}. Expected memory or sql.")
