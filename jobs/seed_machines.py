"""Carga perfiles de máquina en el registro.

Uso:
    python -m jobs.seed_machines                 # set de demo
    python -m jobs.seed_machines machines.json   # lista JSON o {"machines": [...]}
    python -m jobs.seed_machines --clear-readings

Profiles are validated with pydantic before anything is written; one invalid
entry aborts the whole load.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List

import orjson
from pydantic import ValidationError

from common.db import ensure_schema, get_engine
from ingest_api.schemas import MachineProfileSet
from machine_metrics.models import MachineProfile
from machine_metrics.repository import MachineRepository, ReadingRepository

logger = logging.getLogger(__name__)


DEMO_MACHINES: List[dict[str, Any]] = [
    {
        "machine_id": "M001",
        "machine_name": "Press Line 1",
        "machine_type": "onoff",
        "scheduled_start_time": "09:00",
        "scheduled_stop_time": "17:00",
    },
    {
        "machine_id": "C_TEST_01",
        "machine_name": "Counter Test Machine",
        "machine_type": "counter",
        "scheduled_start_time": "08:00",
        "scheduled_stop_time": "20:00",
        "part_per_hour": 120,
    },
    {
        "machine_id": "A_TEST_01",
        "machine_name": "Current Test Machine",
        "machine_type": "current",
        "scheduled_start_time": "08:00",
        "scheduled_stop_time": "20:00",
        "idle_current": 1.5,
        "on_current": 5.0,
    },
]


def load_profiles(raw: Any) -> List[MachineProfile]:
    """Valida una lista de perfiles (o {"machines": [...]})."""
    if isinstance(raw, list):
        raw = {"machines": raw}
    parsed = MachineProfileSet.model_validate(raw)
    return [m.to_profile() for m in parsed.machines]


def seed(machines: MachineRepository, profiles: List[MachineProfile]) -> tuple[int, int]:
    created = updated = 0
    for profile in profiles:
        if machines.upsert_machine(profile):
            created += 1
            logger.info("[SEED] Created machine %s (%s)", profile.machine_id, profile.machine_type.value)
        else:
            updated += 1
            logger.info("[SEED] Updated machine %s", profile.machine_id)
    return created, updated


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Seed the machine registry")
    p.add_argument("file", nargs="?", help="JSON file with machine profiles (default: demo set)")
    p.add_argument(
        "--clear-readings",
        action="store_true",
        help="delete every stored reading before seeding",
    )
    args = p.parse_args()

    raw: Any = DEMO_MACHINES
    if args.file:
        raw = orjson.loads(Path(args.file).read_bytes())

    try:
        profiles = load_profiles(raw)
    except ValidationError as e:
        logger.error("[SEED] Invalid machine profiles:\n%s", e)
        sys.exit(1)

    engine = get_engine()
    ensure_schema(engine)

    if args.clear_readings:
        deleted = ReadingRepository(engine).delete_all()
        logger.info("[SEED] Deleted %d readings", deleted)

    created, updated = seed(MachineRepository(engine), profiles)
    logger.info("[SEED] Done: created=%d updated=%d", created, updated)


if __name__ == "__main__":
    main()
