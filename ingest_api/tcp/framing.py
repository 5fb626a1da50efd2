"""Framing de mensajes delimitados por newline sobre un stream TCP."""

from __future__ import annotations

from typing import List

DEFAULT_MAX_LINE_BYTES = 65536


class LineFramer:
    """Buffer de acumulación por conexión.

    Bytes are buffered (not text) so a UTF-8 sequence split across two
    chunks is reassembled before decoding. Each complete line is stripped;
    blank lines are dropped. Whatever follows the last newline stays in the
    buffer for the next chunk.
    """

    def __init__(self, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES):
        self._max_line_bytes = max_line_bytes
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> List[bytes]:
        self._buffer.extend(chunk)

        lines: List[bytes] = []
        while True:
            newline_index = self._buffer.find(b"\n")
            if newline_index == -1:
                break

            line = bytes(self._buffer[:newline_index]).strip()
            del self._buffer[: newline_index + 1]

            if line:
                lines.append(line)

        return lines

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    @property
    def overflowed(self) -> bool:
        """True si el resto sin newline supera el máximo permitido."""
        return len(self._buffer) > self._max_line_bytes

    def clear(self) -> None:
        self._buffer.clear()
