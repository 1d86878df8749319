from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException
from services.api.app.services.orderflow_base import (
    ConflictOrUnavailableError,
    EmptyGroupKeyError,
    InvalidProductError,
    InvalidQuantityError,
    NoItemsError,
    NotFoundError,
    NothingToDeliverError,
)


def raise_orderflow_http_error(e: Exception) -> NoReturn:
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, (EmptyGroupKeyError, NoItemsError, InvalidQuantityError, InvalidProductError)):
        raise HTTPException(status_code=422, detail=str(e)) from e

    if isinstance(e, NothingToDeliverError):
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(e, ConflictOrUnavailableError):
        raise HTTPException(status_code=409, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e
