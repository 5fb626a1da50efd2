from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from common.config import get_settings
from common.db import ensure_schema, get_engine
from .endpoints import (
    health_router,
    ingest_stats_router,
    live_data_router,
    readings_router,
)
from .tcp.runtime import start_listener, stop_listener

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    ensure_schema(get_engine(settings))

    if settings.tcp_ingest_enabled:
        await start_listener(settings)
    else:
        logger.info("[TCP] Listener disabled (FF_TCP_INGEST_ENABLED=false)")

    try:
        yield
    finally:
        await stop_listener()


app = FastAPI(title="PMMS Telemetry Service", version="0.1.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(live_data_router)
app.include_router(readings_router)
app.include_router(ingest_stats_router)
