"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from common.db import check_connection
from ..deps import get_db_engine

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: ok mientras el proceso esté vivo."""
    return {"status": "ok"}


@router.get("/ready")
def ready(engine: Engine = Depends(get_db_engine)):
    """Readiness probe: comprueba la conexión a la base de datos."""
    try:
        check_connection(engine)
    except Exception:
        # No exponer detalles del error al cliente
        logger.exception("[DB] Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}
