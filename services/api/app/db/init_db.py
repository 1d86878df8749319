from __future__ import annotations

import logging
import os

from services.api.app.db.database import get_engine
from services.api.app.db.models import Base

logger = logging.getLogger(__name__)


def init_db() -> None:
    if os.getenv("ORDERFLOW_DB_AUTO_CREATE", "true").strip().lower() not in {"1", "true", "yes", "y"}:
        logger.info("Skipping table creation (ORDERFLOW_DB_AUTO_CREATE disabled)")
        return

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
