"""OrderFlow API service entrypoint."""

import logging
import os

from fastapi import FastAPI

from services.api.app.logging_setup import setup_logging
from services.api.app.routers.audit import router as audit_router
from services.api.app.routers.orders import router as orders_router
from services.api.app.routers.pending import router as pending_router
from services.api.app.routers.products import router as products_router
from services.api.app.services.context import build_context

logger = logging.getLogger(__name__)

app = FastAPI(title="OrderFlow API")

app.include_router(products_router)
app.include_router(pending_router)
app.include_router(orders_router)
app.include_router(audit_router)


@app.on_event("startup")
def _startup() -> None:
    setup_logging()
    app.state.orderflow = build_context()

    if os.getenv("ORDERFLOW_RECOVER_ON_STARTUP", "false").strip().lower() in {"1", "true", "yes", "y"}:
        recovered = app.state.orderflow.engine.recover_interrupted_resolutions()
        logger.info("Startup recovery scan removed %d pending batches", len(recovered))


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
