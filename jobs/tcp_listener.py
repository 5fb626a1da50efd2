"""Ejecuta el listener TCP de telemetría sin la API HTTP.

Uso:
    python -m jobs.tcp_listener [--host 0.0.0.0] [--port 5000]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace

from common.config import get_settings
from common.db import ensure_schema, get_engine
from ingest_api.tcp.runtime import build_listener

logger = logging.getLogger(__name__)


async def _serve(settings) -> None:
    listener = build_listener(settings)
    try:
        await listener.serve_forever()
    finally:
        await listener.stop()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    settings = get_settings()

    p = argparse.ArgumentParser(description="PMMS TCP ingest listener")
    p.add_argument("--host", default=settings.tcp_host)
    p.add_argument("--port", type=int, default=settings.tcp_port)
    args = p.parse_args()

    settings = replace(settings, tcp_host=args.host, tcp_port=args.port)
    ensure_schema(get_engine(settings))

    try:
        asyncio.run(_serve(settings))
    except KeyboardInterrupt:
        logger.info("[TCP] Interrupted, shutting down")


if __name__ == "__main__":
    main()
