"""Métricas derivadas de máquinas: ventana de día local, predicados de
actividad, acumulación de tiempo ON y motor de métricas."""

from .day_window import DayWindow, IST, LocalOffset, parse_hhmm
from .engine import (
    DEFAULT_CONFIG,
    MetricsConfig,
    compute_current_status,
    compute_derived_metrics,
    no_data_metrics,
)
from .models import (
    DerivedMetrics,
    MachineProfile,
    MachineStatus,
    MachineTimeline,
    MachineType,
    Reading,
    TimelinePoint,
)

__all__ = [
    "DayWindow",
    "IST",
    "LocalOffset",
    "parse_hhmm",
    "DEFAULT_CONFIG",
    "MetricsConfig",
    "compute_current_status",
    "compute_derived_metrics",
    "no_data_metrics",
    "DerivedMetrics",
    "MachineProfile",
    "MachineStatus",
    "MachineTimeline",
    "MachineType",
    "Reading",
    "TimelinePoint",
]
