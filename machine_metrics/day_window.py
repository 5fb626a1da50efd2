"""Local calendar-day arithmetic under a fixed UTC offset.

Every "today" in the system (metrics queries, the engine's sanity check on
the first reading, the per-day timeline) is computed through ``LocalOffset``
so all callers agree on where a day starts and ends.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

_HHMM_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")

ONE_DAY = timedelta(days=1)
ONE_MILLISECOND = timedelta(milliseconds=1)


def as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        # Naive instants are UTC everywhere in this codebase.
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def parse_hhmm(value: str) -> int:
    """Convierte "HH:MM" en minuto del día (0..1439)."""
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid HH:MM time string: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


@dataclass(frozen=True)
class DayWindow:
    """One local calendar day as absolute UTC instants.

    ``start`` is local midnight; ``end`` is one day later minus one
    millisecond. ``end_exclusive`` is what range queries use.
    """

    local_date: date
    start: datetime
    end: datetime

    @property
    def end_exclusive(self) -> datetime:
        return self.start + ONE_DAY

    def contains(self, t: datetime) -> bool:
        return self.start <= as_utc(t) < self.end_exclusive

    def instant_at_minute(self, minute_of_day: int) -> datetime:
        return self.start + timedelta(minutes=minute_of_day)


@dataclass(frozen=True)
class LocalOffset:
    """Fixed local offset from UTC, in minutes (IST = 330)."""

    minutes: int = 330

    @property
    def tzinfo(self) -> timezone:
        return timezone(timedelta(minutes=self.minutes))

    def to_local(self, t: datetime) -> datetime:
        return as_utc(t).astimezone(self.tzinfo)

    def local_date(self, t: datetime) -> date:
        return self.to_local(t).date()

    def to_local_minute_of_day(self, t: datetime) -> int:
        local = self.to_local(t)
        return local.hour * 60 + local.minute

    def format_local_time(self, t: datetime) -> str:
        return self.to_local(t).strftime("%H:%M:%S")

    def day_window_for_date(self, local_date: date) -> DayWindow:
        local_midnight = datetime.combine(local_date, time.min, tzinfo=self.tzinfo)
        start = local_midnight.astimezone(timezone.utc)
        return DayWindow(
            local_date=local_date,
            start=start,
            end=start + ONE_DAY - ONE_MILLISECOND,
        )

    def day_window_for(self, t: datetime) -> DayWindow:
        return self.day_window_for_date(self.local_date(t))


IST = LocalOffset(330)
