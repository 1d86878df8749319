from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

LOCAL_DB_PATH = Path(".local") / "orderflow.db"

# Seconds a SQLite writer waits on a locked database before the store reports it unavailable.
SQLITE_LOCK_TIMEOUT = 15


def database_url() -> str:
    """DATABASE_URL, or a SQLite file under .local/ for local runs."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    LOCAL_DB_PATH.parent.mkdir(exist_ok=True)
    return f"sqlite+pysqlite:///{LOCAL_DB_PATH}"


@lru_cache(maxsize=8)
def _engine_for(url: str, echo: bool) -> Engine:
    connect_args: dict[str, object] = {}
    if url.startswith("sqlite"):
        # Document stores are shared across FastAPI worker threads.
        connect_args = {"check_same_thread": False, "timeout": SQLITE_LOCK_TIMEOUT}
    return create_engine(url, echo=echo, connect_args=connect_args)


@lru_cache(maxsize=8)
def _sessions_for(url: str, echo: bool) -> sessionmaker[Session]:
    return sessionmaker(bind=_engine_for(url, echo), class_=Session, autoflush=False)


def _echo() -> bool:
    return os.getenv("ORDERFLOW_DB_ECHO", "false").strip().lower() in {"1", "true", "yes", "y"}


def get_engine() -> Engine:
    """Engine for the current DATABASE_URL.

    Resolved on every call, so tests can point DATABASE_URL at a temp file before first use.
    """
    return _engine_for(database_url(), _echo())


def db_session() -> Session:
    return _sessions_for(database_url(), _echo())()
