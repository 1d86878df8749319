from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging() -> int:
    """Configure the root logger from ORDERFLOW_LOG_LEVEL (default INFO).

    Safe to call more than once; the stream handler is only installed the first time.
    """

    level_name = os.getenv("ORDERFLOW_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown ORDERFLOW_LOG_LEVEL={level_name!r}")

    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_orderflow", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._orderflow = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # also align uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).setLevel(level)

    return level
