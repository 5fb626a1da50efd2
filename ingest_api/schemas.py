from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from machine_metrics.day_window import LocalOffset, parse_hhmm
from machine_metrics.models import (
    DerivedMetrics,
    MachineProfile,
    MachineStatus,
    MachineTimeline,
    MachineType,
)


class MachineProfileIn(BaseModel):
    # Registro de máquinas (seed). Acepta "part_per_hour" del formato legacy.
    machine_id: str = Field(..., min_length=1)
    machine_name: str = Field(..., min_length=1)
    machine_type: MachineType
    scheduled_start_time: str
    scheduled_stop_time: str
    parts_per_hour: Optional[int] = Field(
        None,
        gt=0,
        validation_alias=AliasChoices("parts_per_hour", "part_per_hour"),
    )
    idle_current: Optional[float] = Field(None, ge=0)
    on_current: Optional[float] = Field(None, ge=0)
    location: str = "Factory Floor 1"
    status: Literal["active", "inactive", "maintenance"] = "active"

    @field_validator("scheduled_start_time", "scheduled_stop_time")
    @classmethod
    def _check_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def _check_type_params(self) -> "MachineProfileIn":
        if self.machine_type is MachineType.COUNTER and self.parts_per_hour is None:
            raise ValueError("parts_per_hour is required for counter machines")
        if self.machine_type is MachineType.CURRENT and (
            self.idle_current is None or self.on_current is None
        ):
            raise ValueError("idle_current and on_current are required for current machines")
        return self

    def to_profile(self) -> MachineProfile:
        return MachineProfile(
            machine_id=self.machine_id,
            machine_name=self.machine_name,
            machine_type=self.machine_type,
            scheduled_start=self.scheduled_start_time,
            scheduled_stop=self.scheduled_stop_time,
            parts_per_hour=self.parts_per_hour,
            idle_current=self.idle_current,
            on_current=self.on_current,
            location=self.location,
            status=self.status,
        )


class MachineProfileSet(BaseModel):
    machines: List[MachineProfileIn] = Field(default_factory=list)


class DerivedMetricsOut(BaseModel):
    machine_id: str
    machine_name: str
    machine_type: MachineType
    date: dt.date
    actual_start_time: Optional[dt.datetime] = None
    # "HH:MM:SS" en hora local, para mostrar junto al horario programado
    actual_start_local_time: Optional[str] = None
    late_start_minutes: int = Field(..., ge=0)
    total_on_time_minutes: int = Field(..., ge=0)
    total_off_time_minutes: int = Field(..., ge=0)
    current_status: MachineStatus
    efficiency_percentage: int = Field(..., ge=0, le=100)
    early_stop_minutes: int = Field(..., ge=0)
    scheduled_start_time: str
    scheduled_stop_time: str
    last_updated: Optional[dt.datetime] = None
    last_value: Optional[float] = None

    @classmethod
    def from_metrics(cls, metrics: DerivedMetrics, offset: LocalOffset) -> "DerivedMetricsOut":
        local_start = None
        if metrics.actual_start_time is not None:
            local_start = offset.format_local_time(metrics.actual_start_time)
        return cls(**metrics.to_dict(), actual_start_local_time=local_start)


class LiveDataResponse(BaseModel):
    success: bool = True
    data: DerivedMetricsOut


class LiveDataListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[DerivedMetricsOut] = Field(default_factory=list)


class TimelinePointOut(BaseModel):
    timestamp: dt.datetime
    value: float
    status: MachineStatus


class MachineTimelineOut(BaseModel):
    machine_id: str
    machine_type: MachineType
    date: dt.date
    count: int
    points: List[TimelinePointOut] = Field(default_factory=list)

    @classmethod
    def from_timeline(cls, timeline: MachineTimeline) -> "MachineTimelineOut":
        return cls(
            machine_id=timeline.machine_id,
            machine_type=timeline.machine_type,
            date=timeline.date,
            count=len(timeline.points),
            points=[
                TimelinePointOut(timestamp=p.timestamp, value=p.value, status=p.status)
                for p in timeline.points
            ],
        )


class TimelineResponse(BaseModel):
    success: bool = True
    data: MachineTimelineOut
