"""Métricas en vivo (día local actual) por máquina."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from machine_metrics.service import MetricsService
from ..deps import get_metrics_service
from ..schemas import DerivedMetricsOut, LiveDataListResponse, LiveDataResponse

router = APIRouter(tags=["machines"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.get("/machines/live", response_model=LiveDataListResponse)
def get_all_live_data(service: MetricsService = Depends(get_metrics_service)):
    """Métricas de hoy para todas las máquinas registradas."""
    try:
        metrics = service.live_data_for_all()
    except Exception:
        logger.exception("[METRICS] Failed to compute live data for all machines")
        return _error(500, "Internal server error")

    offset = service.config.offset
    data = [DerivedMetricsOut.from_metrics(m, offset) for m in metrics]
    return LiveDataListResponse(count=len(data), data=data)


@router.get("/machines/{machine_id}/live", response_model=LiveDataResponse)
def get_machine_live_data(
    machine_id: str,
    service: MetricsService = Depends(get_metrics_service),
):
    try:
        metrics = service.live_data_for(machine_id)
    except Exception:
        logger.exception("[METRICS] Failed to compute live data machine=%s", machine_id)
        return _error(500, "Internal server error")

    if metrics is None:
        return _error(404, "Machine not found")

    return LiveDataResponse(data=DerivedMetricsOut.from_metrics(metrics, service.config.offset))
