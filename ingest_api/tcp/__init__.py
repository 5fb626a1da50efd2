"""Ingesta de telemetría por TCP (líneas JSON delimitadas por newline)."""

from .framing import LineFramer
from .listener import TCPIngestListener
from .processor import IngestOutcome, ReadingIngestor
from .stats import ListenerStats
from .validators import (
    IngestError,
    IngestErrorCode,
    ReadingValidationPipeline,
    ValidationResult,
)

__all__ = [
    "LineFramer",
    "TCPIngestListener",
    "IngestOutcome",
    "ReadingIngestor",
    "ListenerStats",
    "IngestError",
    "IngestErrorCode",
    "ReadingValidationPipeline",
    "ValidationResult",
]
