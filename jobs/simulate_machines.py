"""Simulador de nodos: envía una lectura por máquina registrada cada intervalo.

Uso:
    python -m jobs.simulate_machines [--interval 5] [--once]

Machines are read from the registry; each cycle opens one TCP connection,
sends one line per machine and reads the ack for each.
"""

from __future__ import annotations

import argparse
import logging
import random
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

import orjson

from common.config import get_settings
from common.db import get_engine
from machine_metrics.models import MachineProfile, MachineType
from machine_metrics.repository import MachineRepository

logger = logging.getLogger(__name__)


@dataclass
class SimulatorState:
    counts: Dict[str, int] = field(default_factory=dict)


def next_value(
    profile: MachineProfile,
    state: SimulatorState,
    rng: random.Random,
    interval_seconds: float,
) -> float:
    if profile.machine_type is MachineType.ONOFF:
        # ON el 80% del tiempo
        return 1 if rng.random() > 0.2 else 0

    if profile.machine_type is MachineType.COUNTER:
        parts_per_interval = (profile.parts_per_hour or 0) / 3600 * interval_seconds
        increase = round(parts_per_interval * (0.8 + rng.random() * 0.4))
        count = state.counts.get(profile.machine_id, 0) + max(1, increase)
        state.counts[profile.machine_id] = count
        return count

    # current: ±1 A alrededor de on_current, cae a idle el 10% del tiempo
    if rng.random() > 0.9:
        return profile.idle_current or 0.0
    fluctuation = (rng.random() - 0.5) * 2
    return max(0.0, round((profile.on_current or 0.0) + fluctuation, 2))


def build_payload(profile: MachineProfile, value: float) -> Dict[str, Any]:
    return {"id": profile.machine_id, "type": profile.machine_type.value, "value": value}


def send_batch(
    host: str,
    port: int,
    payloads: List[Dict[str, Any]],
    timeout: float = 10.0,
) -> List[Dict[str, Any]]:
    """Envía las líneas por una conexión y devuelve las respuestas (sin el welcome)."""
    responses: List[Dict[str, Any]] = []
    with socket.create_connection((host, port), timeout=timeout) as sock:
        stream = sock.makefile("rb")
        stream.readline()  # welcome
        for payload in payloads:
            sock.sendall(orjson.dumps(payload) + b"\n")
            line = stream.readline()
            if not line:
                break
            responses.append(orjson.loads(line))
    return responses


def run_cycle(
    machines: List[MachineProfile],
    state: SimulatorState,
    rng: random.Random,
    host: str,
    port: int,
    interval_seconds: float,
) -> int:
    payloads = [build_payload(m, next_value(m, state, rng, interval_seconds)) for m in machines]
    responses = send_batch(host, port, payloads)

    failed = 0
    for payload, resp in zip(payloads, responses):
        if not resp.get("success"):
            failed += 1
            logger.warning("[SIMULATOR] Rejected %s: %s", payload["id"], resp.get("message"))

    logger.info("[SIMULATOR] Sent data for %d machines (failed=%d)", len(payloads), failed)
    return failed


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    settings = get_settings()

    p = argparse.ArgumentParser(description="PMMS machine node simulator")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=settings.tcp_port)
    p.add_argument("--interval", type=float, default=settings.upload_frequency_seconds)
    p.add_argument("--seed", type=int, default=None, help="random seed")
    p.add_argument("--once", action="store_true", help="send a single cycle and exit")
    args = p.parse_args()

    logger.info("[SIMULATOR] Fetching machines...")
    machines = MachineRepository(get_engine(settings)).list_machines()
    if not machines:
        logger.info("[SIMULATOR] No machines found. Run jobs.seed_machines first.")
        return
    logger.info("[SIMULATOR] Found %d machines. Starting simulation...", len(machines))

    state = SimulatorState()
    rng = random.Random(args.seed)

    while True:
        try:
            run_cycle(machines, state, rng, args.host, args.port, args.interval)
        except OSError as e:
            logger.error("[SIMULATOR] Send failed: %s", e)
            if args.once:
                raise
        if args.once:
            return
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
