"""Fixtures compartidos.

The database is in-memory SQLite behind a StaticPool so every connection
(including those opened from executor threads) sees the same schema.
"""

from __future__ import annotations

import os
from datetime import date, datetime, time, timezone
from typing import Callable, Generator, Iterable, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

# Nunca arrancar el listener ni leer un .env real desde los tests
os.environ["FF_TCP_INGEST_ENABLED"] = "false"
os.environ["PMMS_ENV_FILE"] = ""

from common.tables import metadata
from ingest_api.deps import get_db_engine, get_metrics_service
from ingest_api.main import app
from machine_metrics.day_window import IST
from machine_metrics.engine import DEFAULT_CONFIG
from machine_metrics.models import MachineProfile, MachineType, Reading
from machine_metrics.repository import MachineRepository, ReadingRepository
from machine_metrics.service import MetricsService

DAY = date(2024, 1, 15)


def local_ts(hh: int, mm: int = 0, ss: int = 0, day: date = DAY) -> datetime:
    """Instante UTC correspondiente a una hora local IST."""
    return datetime.combine(day, time(hh, mm, ss), tzinfo=IST.tzinfo).astimezone(timezone.utc)


def make_readings(
    profile: MachineProfile,
    samples: Iterable[tuple[datetime, float]],
) -> List[Reading]:
    return [
        Reading(machine_id=profile.machine_id, type=profile.machine_type, value=v, timestamp=ts)
        for ts, v in samples
    ]


# =============================================================================
# PERFILES
# =============================================================================

@pytest.fixture
def onoff_profile() -> MachineProfile:
    return MachineProfile(
        machine_id="M001",
        machine_name="Press Line 1",
        machine_type=MachineType.ONOFF,
        scheduled_start="08:00",
        scheduled_stop="17:00",
    )


@pytest.fixture
def counter_profile() -> MachineProfile:
    return MachineProfile(
        machine_id="C001",
        machine_name="Counter Line",
        machine_type=MachineType.COUNTER,
        scheduled_start="08:00",
        scheduled_stop="20:00",
        parts_per_hour=120,
    )


@pytest.fixture
def current_profile() -> MachineProfile:
    return MachineProfile(
        machine_id="A001",
        machine_name="Spindle Motor",
        machine_type=MachineType.CURRENT,
        scheduled_start="08:00",
        scheduled_stop="20:00",
        idle_current=1.5,
        on_current=5.0,
    )


# =============================================================================
# BASE DE DATOS
# =============================================================================

@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(eng)
    try:
        yield eng
    finally:
        metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture
def machine_repo(engine: Engine) -> MachineRepository:
    return MachineRepository(engine)


@pytest.fixture
def reading_repo(engine: Engine) -> ReadingRepository:
    return ReadingRepository(engine)


@pytest.fixture
def registered(machine_repo, onoff_profile, counter_profile, current_profile):
    for profile in (onoff_profile, counter_profile, current_profile):
        machine_repo.upsert_machine(profile)
    return machine_repo


@pytest.fixture
def fixed_now() -> datetime:
    return local_ts(10, 0, 0)


@pytest.fixture
def fixed_clock(fixed_now) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def metrics_service(machine_repo, reading_repo, fixed_clock) -> MetricsService:
    return MetricsService(machine_repo, reading_repo, config=DEFAULT_CONFIG, clock=fixed_clock)


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def client(engine, metrics_service) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db_engine] = lambda: engine
    app.dependency_overrides[get_metrics_service] = lambda: metrics_service
    # Sin context manager: no se ejecuta el lifespan
    yield TestClient(app)
    app.dependency_overrides.clear()
