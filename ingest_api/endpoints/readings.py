"""Timeline de lecturas de un día local, con estado on/off por lectura."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from machine_metrics.service import MetricsService
from ..deps import get_metrics_service
from ..schemas import MachineTimelineOut, TimelineResponse

router = APIRouter(tags=["machines"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.get("/machines/{machine_id}/readings", response_model=TimelineResponse)
def get_machine_readings(
    machine_id: str,
    day: Optional[date] = Query(None, alias="date", description="Día local YYYY-MM-DD (default: hoy)"),
    service: MetricsService = Depends(get_metrics_service),
):
    try:
        timeline = service.timeline_for(machine_id, day)
    except Exception:
        logger.exception("[METRICS] Failed to build timeline machine=%s date=%s", machine_id, day)
        return _error(500, "Internal server error")

    if timeline is None:
        return _error(404, "Machine not found")

    return TimelineResponse(data=MachineTimelineOut.from_timeline(timeline))
