from __future__ import annotations

from fastapi import Request
from services.api.app.services.context import OrderFlowContext


def get_context(request: Request) -> OrderFlowContext:
    return request.app.state.orderflow
