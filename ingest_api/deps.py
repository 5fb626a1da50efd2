"""Dependencias FastAPI compartidas por los endpoints."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.engine import Engine

from common.config import get_settings
from common.db import get_engine
from machine_metrics.engine import MetricsConfig
from machine_metrics.repository import MachineRepository, ReadingRepository
from machine_metrics.service import MetricsService


def get_db_engine() -> Engine:
    return get_engine()


@lru_cache(maxsize=1)
def get_metrics_config() -> MetricsConfig:
    # Settings se leen una vez por proceso
    return MetricsConfig.from_settings(get_settings())


def get_metrics_service() -> MetricsService:
    engine = get_engine()
    return MetricsService(
        MachineRepository(engine),
        ReadingRepository(engine),
        config=get_metrics_config(),
    )
