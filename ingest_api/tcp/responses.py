"""Respuestas del protocolo de línea (un objeto JSON por línea)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import orjson

from machine_metrics.day_window import as_utc

WELCOME_MESSAGE = "Connected to PMMS TCP Server"


def format_timestamp(ts: datetime) -> str:
    """ISO 8601 con milisegundos y sufijo Z (2024-01-15T08:00:00.000Z)."""
    utc = as_utc(ts)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def welcome() -> Dict[str, Any]:
    return {"success": True, "message": WELCOME_MESSAGE}


def ack(timestamp: datetime) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "Data saved successfully",
        "timestamp": format_timestamp(timestamp),
    }


def failure(message: str, error: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        payload["error"] = error
    return payload


def encode(payload: Dict[str, Any]) -> bytes:
    return orjson.dumps(payload) + b"\n"
