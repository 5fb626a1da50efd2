"""Registro de máquinas y almacén de lecturas sobre SQLAlchemy Core.

Timestamps go in as naive UTC and come back as aware UTC.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine

from common.tables import machine_info, machine_readings

from .day_window import as_utc
from .models import MachineProfile, MachineType, Reading

logger = logging.getLogger(__name__)


def _to_db_ts(t: datetime) -> datetime:
    return as_utc(t).replace(tzinfo=None)


def _from_db_ts(t: datetime) -> datetime:
    return t.replace(tzinfo=timezone.utc)


def _row_to_profile(row: Any) -> MachineProfile:
    return MachineProfile(
        machine_id=row.machine_id,
        machine_name=row.machine_name,
        machine_type=MachineType(row.machine_type),
        scheduled_start=row.scheduled_start_time,
        scheduled_stop=row.scheduled_stop_time,
        parts_per_hour=int(row.part_per_hour) if row.part_per_hour is not None else None,
        idle_current=float(row.idle_current) if row.idle_current is not None else None,
        on_current=float(row.on_current) if row.on_current is not None else None,
        location=row.location,
        status=row.status,
    )


class MachineRepository:
    """Lookup of machine profiles by ``machine_id``."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get_machine(self, machine_id: str) -> Optional[MachineProfile]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(machine_info).where(machine_info.c.machine_id == machine_id)
            ).fetchone()
        return _row_to_profile(row) if row is not None else None

    def list_machines(self, machine_type: Optional[MachineType] = None) -> List[MachineProfile]:
        stmt = select(machine_info).order_by(machine_info.c.machine_id.asc())
        if machine_type is not None:
            stmt = stmt.where(machine_info.c.machine_type == machine_type.value)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_profile(r) for r in rows]

    def upsert_machine(self, profile: MachineProfile) -> bool:
        """Inserta o actualiza un perfil. Devuelve True si era nuevo."""
        now = _to_db_ts(datetime.now(timezone.utc))
        values = {
            "machine_name": profile.machine_name,
            "machine_type": profile.machine_type.value,
            "scheduled_start_time": profile.scheduled_start,
            "scheduled_stop_time": profile.scheduled_stop,
            "part_per_hour": profile.parts_per_hour,
            "idle_current": profile.idle_current,
            "on_current": profile.on_current,
            "status": profile.status,
            "location": profile.location,
            "updated_at": now,
        }

        with self._engine.begin() as conn:
            exists = conn.execute(
                select(func.count())
                .select_from(machine_info)
                .where(machine_info.c.machine_id == profile.machine_id)
            ).scalar_one()

            if exists:
                conn.execute(
                    update(machine_info)
                    .where(machine_info.c.machine_id == profile.machine_id)
                    .values(**values)
                )
                return False

            conn.execute(
                insert(machine_info).values(
                    machine_id=profile.machine_id, created_at=now, **values
                )
            )
            return True


class ReadingRepository:
    """Append-only store of machine readings."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def save_reading(self, reading: Reading) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(machine_readings).values(
                    machine_id=reading.machine_id,
                    type=reading.type.value,
                    value=float(reading.value),
                    timestamp=_to_db_ts(reading.timestamp),
                )
            )
            return int(result.inserted_primary_key[0])

    def find_readings(self, machine_id: str, start: datetime, end: datetime) -> List[Reading]:
        """Lecturas con ``start <= timestamp < end``, ascendentes."""
        stmt = (
            select(machine_readings)
            .where(machine_readings.c.machine_id == machine_id)
            .where(machine_readings.c.timestamp >= _to_db_ts(start))
            .where(machine_readings.c.timestamp < _to_db_ts(end))
            .order_by(machine_readings.c.timestamp.asc(), machine_readings.c.id.asc())
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()

        return [
            Reading(
                id=int(r.id),
                machine_id=r.machine_id,
                type=MachineType(r.type),
                value=float(r.value),
                timestamp=_from_db_ts(r.timestamp),
            )
            for r in rows
        ]

    def delete_all(self) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(delete(machine_readings))
        deleted = int(result.rowcount or 0)
        logger.info("[DB] Deleted %d readings", deleted)
        return deleted
