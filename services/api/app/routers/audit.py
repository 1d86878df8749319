from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from packages.shared.schemas.events import EventV1
from services.api.app.db.deps import get_context
from services.api.app.models.audit import AgedAlertOut, AgedAlertsResponse
from services.api.app.services.context import OrderFlowContext

router = APIRouter()


@router.get("/v1/events", response_model=list[EventV1])
def list_events(
    entity_id: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    ctx: OrderFlowContext = Depends(get_context),
) -> list[EventV1]:
    return ctx.events.list(entity_id=entity_id, limit=limit)


@router.get("/v1/alerts/aged", response_model=AgedAlertsResponse)
def check_aged_entries(ctx: OrderFlowContext = Depends(get_context)) -> AgedAlertsResponse:
    alerts = ctx.monitor.check()
    return AgedAlertsResponse(
        threshold_hours=ctx.monitor.threshold.total_seconds() / 3600,
        alerts=[
            AgedAlertOut(
                entry_id=a.entry_id,
                group_key=a.group_key,
                kind=a.kind.value,
                age_exceeded=a.age_exceeded,
                timestamp=a.timestamp.isoformat(),
                age_hours=round(a.age.total_seconds() / 3600, 2),
            )
            for a in alerts
        ],
    )
