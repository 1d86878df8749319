from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from services.api.app.db.database import db_session
from services.api.app.db.models import DocumentRow
from services.api.app.services.orderflow_base import ConflictOrUnavailableError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ChangeListener = Callable[[list[dict[str, Any]]], None]


class SqlDocumentStore:
    """Document store backed by the `documents` table.

    Listeners only see writes made through this instance; there is no cross-process feed.
    """

    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory
        self._listeners: dict[str, list[ChangeListener]] = {}

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        db = self._session_factory()
        try:
            rows = db.scalars(
                select(DocumentRow)
                .where(DocumentRow.collection == collection)
                .order_by(DocumentRow.pk.asc())
            ).all()
            return [dict(row.body) for row in rows]
        except SQLAlchemyError as e:
            raise ConflictOrUnavailableError(f"Could not read {collection}: {e}") from e
        finally:
            db.close()

    def get(self, collection: str, entity_id: str) -> dict[str, Any] | None:
        db = self._session_factory()
        try:
            row = self._find(db, collection, entity_id)
            return dict(row.body) if row is not None else None
        except SQLAlchemyError as e:
            raise ConflictOrUnavailableError(f"Could not read {collection}/{entity_id}: {e}") from e
        finally:
            db.close()

    def upsert(self, collection: str, entity_id: str, document: dict[str, Any]) -> None:
        db = self._session_factory()
        try:
            row = self._find(db, collection, entity_id)
            if row is None:
                db.add(DocumentRow(collection=collection, doc_id=entity_id, body=document))
            else:
                row.body = document
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise ConflictOrUnavailableError(f"Could not write {collection}/{entity_id}: {e}") from e
        finally:
            db.close()

        self._notify(collection)

    def delete(self, collection: str, entity_id: str) -> bool:
        db = self._session_factory()
        try:
            row = self._find(db, collection, entity_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise ConflictOrUnavailableError(f"Could not delete {collection}/{entity_id}: {e}") from e
        finally:
            db.close()

        self._notify(collection)
        return True

    def subscribe(self, collection: str, on_change: ChangeListener) -> Callable[[], None]:
        self._listeners.setdefault(collection, []).append(on_change)

        def _unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if on_change in listeners:
                listeners.remove(on_change)

        return _unsubscribe

    def _find(self, db: Session, collection: str, entity_id: str) -> DocumentRow | None:
        return db.scalars(
            select(DocumentRow).where(
                DocumentRow.collection == collection,
                DocumentRow.doc_id == entity_id,
            )
        ).first()

    def _notify(self, collection: str) -> None:
        listeners = list(self._listeners.get(collection, []))
        if not listeners:
            return

        snapshot = self.get_all(collection)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Change listener failed for collection=%s", collection)
