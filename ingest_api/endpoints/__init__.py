"""Módulo de endpoints HTTP.

Contiene los endpoints de la API organizados por función.
"""

from .health import router as health_router
from .live_data import router as live_data_router
from .readings import router as readings_router
from .ingest_stats import router as ingest_stats_router

__all__ = [
    "health_router",
    "live_data_router",
    "readings_router",
    "ingest_stats_router",
]
