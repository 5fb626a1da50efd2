"""Contadores del listener TCP."""

from fastapi import APIRouter

from ..tcp.runtime import get_listener

router = APIRouter(tags=["ingest"])


@router.get("/ingest/stats")
def get_ingest_stats():
    listener = get_listener()
    if listener is None:
        return {"running": False}
    return listener.health_check()
