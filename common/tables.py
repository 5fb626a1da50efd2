"""Tablas del registro de máquinas y del almacén de lecturas.

Timestamps are stored as naive UTC. Conversion to aware datetimes happens in
the repository layer.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)

metadata = MetaData()


machine_info = Table(
    "machine_info",
    metadata,
    Column("machine_id", String(64), primary_key=True),
    Column("machine_name", String(128), nullable=False),
    Column("machine_type", String(16), nullable=False),
    Column("scheduled_start_time", String(5), nullable=False),
    Column("scheduled_stop_time", String(5), nullable=False),
    # counter
    Column("part_per_hour", Integer, nullable=True),
    # current
    Column("idle_current", Float, nullable=True),
    Column("on_current", Float, nullable=True),
    Column("status", String(16), nullable=False, default="active"),
    Column("location", String(128), nullable=False, default="Factory Floor 1"),
    Column("created_at", DateTime, nullable=True),
    Column("updated_at", DateTime, nullable=True),
)


machine_readings = Table(
    "machine_readings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("machine_id", String(64), nullable=False, index=True),
    Column("type", String(16), nullable=False),
    Column("value", Float, nullable=False),
    Column("timestamp", DateTime, nullable=False, index=True),
)

Index(
    "ix_machine_readings_machine_ts",
    machine_readings.c.machine_id,
    machine_readings.c.timestamp,
)
