"""Acumulación de tiempo ON a partir de lecturas puntuales.

Readings are sparse samples; the walk reconstructs running intervals from
consecutive pairs. Everything is clamped to ``limit`` (the effective limit:
the earlier of "now" and the scheduled stop).
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Callable, Sequence

from .activity import is_active_value
from .models import MachineProfile, MachineType, Reading


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def seconds_to_minutes(seconds: float) -> int:
    return round_half_up(seconds / 60.0)


def _gated_walk(
    readings: Sequence[Reading],
    limit: datetime,
    max_gap_seconds: float,
    active: Callable[[float], bool],
) -> float:
    total = 0.0

    for current, following in zip(readings, readings[1:]):
        start = current.timestamp
        if start >= limit:
            break
        end = min(following.timestamp, limit)

        if not (active(current.value) and active(following.value)):
            continue

        # Gap is judged on the raw samples, not on the clamped segment.
        gap = (following.timestamp - current.timestamp).total_seconds()
        if gap < max_gap_seconds:
            total += max(0.0, (end - start).total_seconds())

    # Open segment: an active last sample counts up to the limit, unless it
    # is already too old to trust.
    if readings:
        last = readings[-1]
        if active(last.value) and last.timestamp < limit:
            duration = (limit - last.timestamp).total_seconds()
            if 0 < duration < max_gap_seconds:
                total += duration

    return total


def _counter_walk(readings: Sequence[Reading], limit: datetime, parts_per_hour: int) -> float:
    seconds_per_part = 3600.0 / parts_per_hour
    total = 0.0

    for current, following in zip(readings, readings[1:]):
        start = current.timestamp
        if start >= limit:
            break
        if following.value <= current.value:
            continue

        end = min(following.timestamp, limit)
        elapsed = max(0.0, (end - start).total_seconds())
        theoretical = (following.value - current.value) * seconds_per_part
        total += min(elapsed, theoretical)

    return total


def on_time_seconds(
    profile: MachineProfile,
    readings: Sequence[Reading],
    limit: datetime,
    max_gap_seconds: float,
) -> float:
    """Segundos ON acumulados hasta ``limit``.

    Args:
        profile: Perfil de la máquina (tipo y parámetros)
        readings: Lecturas del día, en orden ascendente
        limit: Instante máximo a contabilizar
        max_gap_seconds: Umbral de staleness (frecuencia + desviación)
    """
    if profile.machine_type is MachineType.COUNTER:
        if not profile.parts_per_hour or profile.parts_per_hour <= 0:
            raise ValueError(
                f"counter machine {profile.machine_id} has no positive parts_per_hour"
            )
        return _counter_walk(readings, limit, profile.parts_per_hour)

    return _gated_walk(
        readings,
        limit,
        max_gap_seconds,
        lambda value: is_active_value(profile, value),
    )
