"""Esquema de tablas.

Los nombres físicos (system_logs / system_status) son los de la BD que ya usa
el dashboard; las columnas siguen el contrato log_entries / status.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Time,
    func,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

system_logs = Table(
    "system_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("record_date", Date),
    Column("record_time", Time),
    Column("ldr_value", Integer, nullable=True),
    Column("battery_voltage", Numeric(5, 2, asdecimal=False), nullable=True),
    Column("temperature", Numeric(5, 2, asdecimal=False), nullable=True),
    Column("chiller", String(8), nullable=True),
    Column("state", String(16), nullable=True),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
    Index("idx_record_date", "record_date"),
    Index("idx_created_at", "created_at"),
)

system_status = Table(
    "system_status",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mode", String(16), nullable=False),
    Column("record_date", Date),
    Column("record_time", Time),
    Column("chiller_status", String(8), nullable=False),
    Column("fsm_state", String(16), nullable=False),
    Column("created_at", DateTime, server_default=func.now(), nullable=False),
)


def ensure_schema(engine: Engine) -> None:
    """Crea tablas e índices si no existen. Idempotente."""
    logger.info("[DB] Ensuring schema exists")
    metadata.create_all(engine, checkfirst=True)
    logger.info("[DB] Tables system_logs, system_status ready")
