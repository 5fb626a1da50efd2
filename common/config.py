from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env next to the packages, shared by the HTTP app and the jobs.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str

    tcp_host: str
    tcp_port: int
    tcp_max_line_bytes: int
    tcp_read_chunk_bytes: int
    tcp_ingest_enabled: bool

    local_utc_offset_minutes: int
    upload_frequency_seconds: float
    upload_deviation_seconds: float


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("PMMS_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./pmms.db")

    tcp_host = os.getenv("TCP_HOST", "0.0.0.0")
    tcp_port = int(os.getenv("TCP_PORT", "5000"))
    tcp_max_line_bytes = int(os.getenv("TCP_MAX_LINE_BYTES", "65536"))
    tcp_read_chunk_bytes = int(os.getenv("TCP_READ_CHUNK_BYTES", "4096"))
    tcp_ingest_enabled = _env_flag("FF_TCP_INGEST_ENABLED", "true")

    # IST (UTC+5:30) is where the plant runs.
    local_utc_offset_minutes = int(os.getenv("LOCAL_UTC_OFFSET_MINUTES", "330"))

    upload_frequency_seconds = float(os.getenv("MACHINE_DATA_UPLOAD_FREQ_SECONDS", "5"))
    upload_deviation_seconds = float(os.getenv("MACHINE_DATA_DEVIATION_SECONDS", "5"))

    return Settings(
        database_url=database_url,
        tcp_host=tcp_host,
        tcp_port=tcp_port,
        tcp_max_line_bytes=tcp_max_line_bytes,
        tcp_read_chunk_bytes=tcp_read_chunk_bytes,
        tcp_ingest_enabled=tcp_ingest_enabled,
        local_utc_offset_minutes=local_utc_offset_minutes,
        upload_frequency_seconds=upload_frequency_seconds,
        upload_deviation_seconds=upload_deviation_seconds,
    )
