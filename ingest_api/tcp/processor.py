"""Procesa una línea recibida: validación, persistencia y respuesta.

Registry lookups and store writes are blocking SQLAlchemy calls and run in
the loop's default executor.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from machine_metrics.models import Reading
from machine_metrics.repository import MachineRepository, ReadingRepository
from machine_metrics.service import utc_now

from . import responses
from .validators import IngestErrorCode, ReadingValidationPipeline

logger = logging.getLogger(__name__)


def truncate_to_millis(ts: datetime) -> datetime:
    return ts.replace(microsecond=(ts.microsecond // 1000) * 1000)


@dataclass(frozen=True)
class IngestOutcome:
    response: Dict[str, Any]
    error_code: Optional[IngestErrorCode] = None
    reading: Optional[Reading] = None


class ReadingIngestor:
    def __init__(
        self,
        machines: MachineRepository,
        readings: ReadingRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._readings = readings
        self._clock = clock
        self._pipeline = ReadingValidationPipeline(machines.get_machine)

    async def handle_line(self, line: bytes, client: str = "-") -> IngestOutcome:
        """Always returns exactly one response; never raises (except cancellation)."""
        loop = asyncio.get_running_loop()

        try:
            validation = await loop.run_in_executor(None, self._pipeline.validate, line)
        except Exception as e:
            logger.exception("[TCP] Error processing message from %s", client)
            return IngestOutcome(
                response=responses.failure("Error processing data", str(e)),
                error_code=IngestErrorCode.PROCESSING_ERROR,
            )

        if not validation.valid:
            return IngestOutcome(
                response=responses.failure(validation.error.message),
                error_code=validation.error.code,
            )

        ctx = validation.context
        # El timestamp lo pone el servidor, nunca el cliente
        reading = Reading(
            machine_id=ctx.machine_id,
            type=ctx.machine_type,
            value=ctx.value,
            timestamp=truncate_to_millis(self._clock()),
        )

        try:
            await loop.run_in_executor(None, self._readings.save_reading, reading)
        except Exception as e:
            logger.exception("[TCP] Error saving reading from %s", client)
            return IngestOutcome(
                response=responses.failure("Error saving data", str(e)),
                error_code=IngestErrorCode.SAVE_FAILED,
            )

        logger.info(
            "[TCP] Saved reading: %s | %s | %s",
            reading.machine_id,
            reading.type.value,
            reading.value,
        )
        return IngestOutcome(response=responses.ack(reading.timestamp), reading=reading)
