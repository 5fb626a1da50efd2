from __future__ import annotations

from typing import Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings, get_settings
from .tables import metadata


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    connect_args = {}
    if url.get_backend_name() == "sqlite":
        # El listener escribe desde el executor; la conexión cruza threads.
        connect_args["check_same_thread"] = False

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine backend=%s host=%s db=%s",
        url.get_backend_name(),
        url.host,
        url.database,
    )

    return create_engine(
        url,
        pool_pre_ping=True,
        future=True,
        connect_args=connect_args,
    )


def get_engine(settings: Optional[Settings] = None) -> Engine:
    """Engine singleton, creado en el primer uso."""
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    _engine = build_engine(settings.database_url)
    return _engine


def ensure_schema(engine: Engine) -> None:
    """Crea las tablas si no existen. Seguro de llamar varias veces."""
    logger.info("[DB] Ensuring schema exists")
    metadata.create_all(engine)


def check_connection(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
