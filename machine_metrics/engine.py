"""Motor de métricas derivadas por máquina y día local.

``compute_derived_metrics`` is a pure function of (profile, today's readings,
now). Nothing is cached; every call re-derives status and accumulators from
the raw samples.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Sequence

from .activity import counter_rate_is_on, is_active_value, last_active_index
from .day_window import IST, LocalOffset, as_utc, parse_hhmm
from .models import DerivedMetrics, MachineProfile, MachineStatus, MachineType, Reading
from .on_time import on_time_seconds, round_half_up, seconds_to_minutes

if TYPE_CHECKING:
    from common.config import Settings


@dataclass(frozen=True)
class MetricsConfig:
    """Parámetros del motor.

    Attributes
    ----------
    offset: LocalOffset
        Offset local fijo usado para definir "hoy" y los horarios HH:MM.
    upload_frequency_seconds: float
        Periodo nominal de envío de los nodos.
    deviation_seconds: float
        Retraso tolerado sobre ese periodo.
    """

    offset: LocalOffset = IST
    upload_frequency_seconds: float = 5.0
    deviation_seconds: float = 5.0

    @property
    def staleness_threshold_seconds(self) -> float:
        return self.upload_frequency_seconds + self.deviation_seconds

    @classmethod
    def from_settings(cls, settings: "Settings") -> "MetricsConfig":
        return cls(
            offset=LocalOffset(settings.local_utc_offset_minutes),
            upload_frequency_seconds=settings.upload_frequency_seconds,
            deviation_seconds=settings.upload_deviation_seconds,
        )


DEFAULT_CONFIG = MetricsConfig()


def no_data_metrics(
    profile: MachineProfile,
    now: datetime,
    config: MetricsConfig = DEFAULT_CONFIG,
) -> DerivedMetrics:
    return DerivedMetrics(
        machine_id=profile.machine_id,
        machine_name=profile.machine_name,
        machine_type=profile.machine_type,
        date=config.offset.local_date(now),
        actual_start_time=None,
        late_start_minutes=0,
        total_on_time_minutes=0,
        total_off_time_minutes=0,
        current_status=MachineStatus.UNKNOWN,
        efficiency_percentage=0,
        early_stop_minutes=0,
        scheduled_start_time=profile.scheduled_start,
        scheduled_stop_time=profile.scheduled_stop,
        last_updated=None,
        last_value=None,
    )


def compute_current_status(
    profile: MachineProfile,
    readings: Sequence[Reading],
    now: datetime,
    staleness_threshold_seconds: float,
) -> MachineStatus:
    """Estado instantáneo a partir de la última lectura."""
    if not readings:
        return MachineStatus.UNKNOWN

    latest = readings[-1]
    if (now - latest.timestamp).total_seconds() > staleness_threshold_seconds:
        # Sin datos recientes: se asume parada
        return MachineStatus.OFF

    if profile.machine_type is MachineType.COUNTER:
        if len(readings) < 2:
            return MachineStatus.UNKNOWN
        on = counter_rate_is_on(profile, readings[-2], latest)
    else:
        on = is_active_value(profile, latest.value)

    return MachineStatus.ON if on else MachineStatus.OFF


def compute_early_stop_minutes(
    profile: MachineProfile,
    readings: Sequence[Reading],
    stop_minute: int,
    offset: LocalOffset,
) -> int:
    index = last_active_index(profile, readings)
    if index is None:
        # Never active today; late start already reports that.
        return 0

    last_active_minute = offset.to_local_minute_of_day(readings[index].timestamp)
    if stop_minute > last_active_minute:
        return stop_minute - last_active_minute
    return 0


def compute_derived_metrics(
    profile: MachineProfile,
    readings: Sequence[Reading],
    now: datetime,
    config: MetricsConfig = DEFAULT_CONFIG,
) -> DerivedMetrics:
    """Calcula las métricas del día para una máquina.

    Args:
        profile: Perfil de la máquina
        readings: Lecturas del día local en orden ascendente de timestamp
        now: Instante actual
        config: Offset local y umbral de staleness

    Returns:
        DerivedMetrics (registro "sin datos" si no hay lecturas de hoy)
    """
    now = as_utc(now)
    offset = config.offset
    window = offset.day_window_for(now)

    if not readings or not window.contains(readings[0].timestamp):
        return no_data_metrics(profile, now, config)

    start_minute = parse_hhmm(profile.scheduled_start)
    stop_minute = parse_hhmm(profile.scheduled_stop)
    now_minute = offset.to_local_minute_of_day(now)
    threshold = config.staleness_threshold_seconds

    first = readings[0]
    last = readings[-1]

    effective_limit = min(now, window.instant_at_minute(stop_minute))

    late_start = max(0, offset.to_local_minute_of_day(first.timestamp) - start_minute)

    on_minutes = seconds_to_minutes(
        on_time_seconds(profile, readings, effective_limit, threshold)
    )

    # Solo cuenta la parte del turno ya transcurrida
    clamped_now = min(max(now_minute, start_minute), stop_minute)
    elapsed_shift = max(0, clamped_now - start_minute)

    off_minutes = max(0, elapsed_shift - on_minutes)

    efficiency = 0
    if elapsed_shift > 0:
        efficiency = round_half_up(100.0 * on_minutes / elapsed_shift)
    efficiency = min(100, max(0, efficiency))

    status = compute_current_status(profile, readings, now, threshold)

    early_stop = 0
    if status is MachineStatus.OFF:
        early_stop = compute_early_stop_minutes(profile, readings, stop_minute, offset)

    return DerivedMetrics(
        machine_id=profile.machine_id,
        machine_name=profile.machine_name,
        machine_type=profile.machine_type,
        date=window.local_date,
        actual_start_time=first.timestamp,
        late_start_minutes=late_start,
        total_on_time_minutes=on_minutes,
        total_off_time_minutes=off_minutes,
        current_status=status,
        efficiency_percentage=efficiency,
        early_stop_minutes=early_stop,
        scheduled_start_time=profile.scheduled_start,
        scheduled_stop_time=profile.scheduled_stop,
        last_updated=last.timestamp,
        last_value=last.value,
    )
