"""Per-machine-type activity predicates.

One place decides whether a sample means "the machine was running":

- onoff: ``value == 1``
- current: ``value >= on_current``
- counter: the counter moved up relative to the previous sample (or the
  first sample of the day is already above zero)

The counter status check (``counter_rate_is_on``) is a different test: it
compares the last increase against the rate the machine should be producing
at. The two can disagree on the same sample.
"""

from __future__ import annotations

from typing import Sequence

from .models import MachineProfile, MachineType, Reading

COUNTER_ON_RATIO = 0.8


def is_active_value(profile: MachineProfile, value: float) -> bool:
    """Value-only predicate for onoff and current machines."""
    if profile.machine_type is MachineType.ONOFF:
        return value == 1
    if profile.machine_type is MachineType.CURRENT:
        return profile.on_current is not None and value >= profile.on_current
    raise ValueError("counter activity depends on the previous sample")


def is_active_sample(profile: MachineProfile, readings: Sequence[Reading], index: int) -> bool:
    reading = readings[index]
    if profile.machine_type is MachineType.COUNTER:
        if index > 0:
            return reading.value > readings[index - 1].value
        return reading.value > 0
    return is_active_value(profile, reading.value)


def last_active_index(profile: MachineProfile, readings: Sequence[Reading]) -> int | None:
    for i in range(len(readings) - 1, -1, -1):
        if is_active_sample(profile, readings, i):
            return i
    return None


def counter_rate_is_on(profile: MachineProfile, previous: Reading, latest: Reading) -> bool:
    elapsed_minutes = (latest.timestamp - previous.timestamp).total_seconds() / 60.0
    expected_increase = (profile.parts_per_hour or 0) / 60.0 * elapsed_minutes
    actual_increase = latest.value - previous.value
    return actual_increase >= expected_increase * COUNTER_ON_RATIO
