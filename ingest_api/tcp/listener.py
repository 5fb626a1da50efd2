"""Listener TCP de telemetría (protocolo de líneas JSON).

Protocol:
1. Server → {"success": true, "message": "Connected to PMMS TCP Server"}
2. Client → {"id": "M001", "type": "onoff", "value": 1}
3. Server → ack {"success": true, ..., "timestamp": "..."} or
   error {"success": false, "message": "...", "error"?: "..."}

Validation and save errors never close the connection. The only
server-side close is a line that grows past ``max_line_bytes`` without a
newline.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from . import responses
from .framing import DEFAULT_MAX_LINE_BYTES, LineFramer
from .processor import ReadingIngestor
from .stats import ListenerStats
from .validators import IngestErrorCode

logger = logging.getLogger(__name__)


class TCPIngestListener:
    def __init__(
        self,
        ingestor: ReadingIngestor,
        host: str = "0.0.0.0",
        port: int = 5000,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        read_chunk_bytes: int = 4096,
    ):
        self.host = host
        self.port = port
        self._ingestor = ingestor
        self._max_line_bytes = max_line_bytes
        self._read_chunk_bytes = read_chunk_bytes

        self._server: Optional[asyncio.AbstractServer] = None
        # Solo para poder cancelarlas al parar; no se comparte estado entre conexiones
        self._connection_tasks: Set[asyncio.Task] = set()
        self.stats = ListenerStats()

    @property
    def is_running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def bound_port(self) -> Optional[int]:
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        if self._server is not None:
            return

        self._server = await asyncio.start_server(
            self._handle_connection, self.host, self.port
        )
        logger.info("[TCP] Server listening on %s:%s", self.host, self.bound_port)

    async def serve_forever(self) -> None:
        await self.start()
        await self._server.serve_forever()

    async def stop(self) -> None:
        if self._server is None:
            return

        server, self._server = self._server, None
        server.close()

        for task in list(self._connection_tasks):
            task.cancel()
        if self._connection_tasks:
            await asyncio.gather(*self._connection_tasks, return_exceptions=True)

        await server.wait_closed()
        logger.info("[TCP] Server stopped. %s", self.stats)

    def health_check(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "host": self.host,
            "port": self.bound_port or self.port,
            **self.stats.to_dict(),
        }

    async def _send(self, writer: asyncio.StreamWriter, payload: Dict[str, Any]) -> None:
        writer.write(responses.encode(payload))
        await writer.drain()

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connection_tasks.add(task)

        peer = writer.get_extra_info("peername")
        client = f"{peer[0]}:{peer[1]}" if isinstance(peer, tuple) else str(peer)
        logger.info("[TCP] New connection from %s", client)

        self.stats.connection_opened()
        framer = LineFramer(self._max_line_bytes)

        try:
            await self._send(writer, responses.welcome())

            while True:
                chunk = await reader.read(self._read_chunk_bytes)
                if not chunk:
                    break

                for line in framer.feed(chunk):
                    logger.debug("[TCP] Received from %s: %r", client, line)
                    outcome = await self._ingestor.handle_line(line, client)
                    self.stats.record(outcome.error_code)
                    await self._send(writer, outcome.response)

                if framer.overflowed:
                    logger.warning(
                        "[TCP] %s sent %d bytes without newline (max=%d); closing",
                        client,
                        framer.pending_bytes,
                        self._max_line_bytes,
                    )
                    framer.clear()
                    self.stats.record(IngestErrorCode.PROTOCOL_VIOLATION)
                    await self._send(
                        writer, responses.failure("Message exceeds maximum line length")
                    )
                    break

        except OSError as e:
            logger.warning("[TCP] Socket error from %s: %s", client, e)
        finally:
            self.stats.connection_closed()
            if task is not None:
                self._connection_tasks.discard(task)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug("[TCP] Close error for %s: %s", client, e)
            logger.info("[TCP] Client disconnected: %s", client)
