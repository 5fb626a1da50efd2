"""Consultas de métricas del día: una máquina, todas, y timeline por lectura.

Each query reads the raw readings of the local day fresh from the store and
runs them through the engine. There is no cache.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from .activity import is_active_sample
from .engine import DEFAULT_CONFIG, MetricsConfig, compute_derived_metrics, no_data_metrics
from .models import (
    DerivedMetrics,
    MachineProfile,
    MachineStatus,
    MachineTimeline,
    Reading,
    TimelinePoint,
)
from .repository import MachineRepository, ReadingRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetricsService:
    def __init__(
        self,
        machines: MachineRepository,
        readings: ReadingRepository,
        config: MetricsConfig = DEFAULT_CONFIG,
        clock: Clock = utc_now,
    ):
        self._machines = machines
        self._readings = readings
        self._config = config
        self._clock = clock

    @property
    def config(self) -> MetricsConfig:
        return self._config

    def _readings_for_day(self, machine_id: str, local_date: date) -> List[Reading]:
        window = self._config.offset.day_window_for_date(local_date)
        return self._readings.find_readings(machine_id, window.start, window.end_exclusive)

    def _compute(self, profile: MachineProfile, now: datetime) -> DerivedMetrics:
        todays = self._readings_for_day(profile.machine_id, self._config.offset.local_date(now))
        try:
            metrics = compute_derived_metrics(profile, todays, now, self._config)
        except ValueError as e:
            # Perfil incompleto en el registro (p.ej. counter sin part_per_hour)
            logger.warning("[METRICS] Invalid profile machine=%s: %s", profile.machine_id, e)
            return no_data_metrics(profile, now, self._config)
        logger.debug(
            "[METRICS] machine=%s readings=%d status=%s on=%dmin eff=%d%%",
            profile.machine_id,
            len(todays),
            metrics.current_status.value,
            metrics.total_on_time_minutes,
            metrics.efficiency_percentage,
        )
        return metrics

    def live_data_for(self, machine_id: str) -> Optional[DerivedMetrics]:
        """Métricas de hoy para una máquina; None si no está registrada."""
        profile = self._machines.get_machine(machine_id)
        if profile is None:
            return None
        return self._compute(profile, self._clock())

    def live_data_for_all(self) -> List[DerivedMetrics]:
        """Métricas de hoy para todas las máquinas registradas.

        Machines without readings today still appear, with the no-data
        defaults.
        """
        now = self._clock()
        return [self._compute(profile, now) for profile in self._machines.list_machines()]

    def timeline_for(
        self,
        machine_id: str,
        local_date: Optional[date] = None,
    ) -> Optional[MachineTimeline]:
        """Estado on/off de cada lectura de un día local (por defecto hoy)."""
        profile = self._machines.get_machine(machine_id)
        if profile is None:
            return None

        if local_date is None:
            local_date = self._config.offset.local_date(self._clock())

        readings = self._readings_for_day(machine_id, local_date)
        points = [
            TimelinePoint(
                timestamp=r.timestamp,
                value=r.value,
                status=MachineStatus.ON if is_active_sample(profile, readings, i) else MachineStatus.OFF,
            )
            for i, r in enumerate(readings)
        ]

        return MachineTimeline(
            machine_id=profile.machine_id,
            machine_type=profile.machine_type,
            date=local_date,
            points=points,
        )
