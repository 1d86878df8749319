from __future__ import annotations

from pydantic import BaseModel


class AgedAlertOut(BaseModel):
    entry_id: str
    group_key: str
    kind: str
    age_exceeded: bool = True
    timestamp: str
    age_hours: float


class AgedAlertsResponse(BaseModel):
    threshold_hours: float
    alerts: list[AgedAlertOut]
