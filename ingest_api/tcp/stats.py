"""Estadísticas del listener TCP."""

from __future__ import annotations

import time
from collections import Counter
from typing import Optional

from .validators import IngestErrorCode


class ListenerStats:
    """Contadores del listener.

    Connection state itself stays inside each connection's task; only these
    counters are shared. All updates happen on the event loop thread.
    """

    def __init__(self):
        self.connections_total = 0
        self.connections_active = 0
        self.received = 0
        self.processed = 0
        self.failed = 0
        self.rejected_by_code: Counter[str] = Counter()
        self.last_message_at: float = 0

    def connection_opened(self) -> None:
        self.connections_total += 1
        self.connections_active += 1

    def connection_closed(self) -> None:
        self.connections_active = max(0, self.connections_active - 1)

    def record(self, error_code: Optional[IngestErrorCode]) -> None:
        self.received += 1
        self.last_message_at = time.time()
        if error_code is None:
            self.processed += 1
        else:
            self.failed += 1
            self.rejected_by_code[error_code.value] += 1

    def __str__(self) -> str:
        return (
            f"Stats: connections={self.connections_active}/{self.connections_total} "
            f"received={self.received} processed={self.processed} failed={self.failed}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        return {
            "connections_total": self.connections_total,
            "connections_active": self.connections_active,
            "received": self.received,
            "processed": self.processed,
            "failed": self.failed,
            "rejected_by_code": dict(self.rejected_by_code),
            "last_message_at": self.last_message_at,
        }
