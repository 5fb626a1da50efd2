"""Modelos de dominio: perfil de máquina, lectura y métricas derivadas."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class MachineType(str, Enum):
    ONOFF = "onoff"
    COUNTER = "counter"
    CURRENT = "current"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(m.value for m in cls)


class MachineStatus(str, Enum):
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MachineProfile:
    """Entrada del registro de máquinas.

    ``scheduled_start``/``scheduled_stop`` are local "HH:MM" strings.
    ``parts_per_hour`` applies to counter machines, ``idle_current`` and
    ``on_current`` to current machines (``on_current`` is the activity
    threshold).
    """

    machine_id: str
    machine_name: str
    machine_type: MachineType
    scheduled_start: str
    scheduled_stop: str
    parts_per_hour: Optional[int] = None
    idle_current: Optional[float] = None
    on_current: Optional[float] = None
    location: str = "Factory Floor 1"
    status: str = "active"


@dataclass(frozen=True)
class Reading:
    """Lectura de máquina - timestamp asignado por el servidor (UTC aware)."""

    machine_id: str
    type: MachineType
    value: float
    timestamp: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class DerivedMetrics:
    machine_id: str
    machine_name: str
    machine_type: MachineType
    date: date
    actual_start_time: Optional[datetime]
    late_start_minutes: int
    total_on_time_minutes: int
    total_off_time_minutes: int
    current_status: MachineStatus
    efficiency_percentage: int
    early_stop_minutes: int
    scheduled_start_time: str
    scheduled_stop_time: str
    last_updated: Optional[datetime]
    last_value: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["machine_type"] = self.machine_type.value
        data["current_status"] = self.current_status.value
        return data


@dataclass(frozen=True)
class TimelinePoint:
    timestamp: datetime
    value: float
    status: MachineStatus


@dataclass(frozen=True)
class MachineTimeline:
    machine_id: str
    machine_type: MachineType
    date: date
    points: list[TimelinePoint] = field(default_factory=list)
