"""Singleton management for the TCP listener."""

from __future__ import annotations

import logging
from typing import Optional

from common.config import Settings, get_settings
from common.db import get_engine
from machine_metrics.repository import MachineRepository, ReadingRepository

from .listener import TCPIngestListener
from .processor import ReadingIngestor

logger = logging.getLogger(__name__)

# Singleton
_listener: Optional[TCPIngestListener] = None


def build_listener(settings: Optional[Settings] = None) -> TCPIngestListener:
    settings = settings or get_settings()
    engine = get_engine(settings)

    ingestor = ReadingIngestor(MachineRepository(engine), ReadingRepository(engine))
    return TCPIngestListener(
        ingestor,
        host=settings.tcp_host,
        port=settings.tcp_port,
        max_line_bytes=settings.tcp_max_line_bytes,
        read_chunk_bytes=settings.tcp_read_chunk_bytes,
    )


def get_listener() -> Optional[TCPIngestListener]:
    """Obtiene el listener singleton."""
    return _listener


async def start_listener(settings: Optional[Settings] = None) -> TCPIngestListener:
    """Inicia el listener."""
    global _listener

    if _listener is None:
        _listener = build_listener(settings)

    await _listener.start()
    return _listener


async def stop_listener() -> None:
    """Detiene el listener."""
    global _listener

    if _listener is not None:
        await _listener.stop()
        _listener = None
