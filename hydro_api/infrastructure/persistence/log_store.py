"""Almacén append-only de system_logs."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from ...core.domain import ChillerState, LogEntry, TelemetryRecord
from ...core.errors import StoreUnavailable
from .schema import system_logs

logger = logging.getLogger(__name__)

_READ_ORDER = (
    system_logs.c.created_at.desc(),
    system_logs.c.record_date.desc(),
    system_logs.c.record_time.desc(),
    system_logs.c.id.desc(),
)


def _row_to_entry(row: Row) -> LogEntry:
    record = TelemetryRecord(
        record_date=row.record_date,
        record_time=row.record_time,
        ldr_value=row.ldr_value,
        battery_voltage=float(row.battery_voltage) if row.battery_voltage is not None else None,
        temperature=float(row.temperature) if row.temperature is not None else None,
        chiller_state=ChillerState(row.chiller) if row.chiller else None,
        fsm_state=row.state or None,
    )
    return LogEntry(id=int(row.id), record=record, created_at=row.created_at)


class LogStore:
    """INSERT / SELECT sobre system_logs. Nunca actualiza ni borra."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def append(self, record: TelemetryRecord) -> int:
        """Inserta una fila y devuelve su id."""
        stmt = insert(system_logs).values(
            record_date=record.record_date,
            record_time=record.record_time,
            ldr_value=record.ldr_value,
            battery_voltage=record.battery_voltage,
            temperature=record.temperature,
            chiller=record.chiller_state.value if record.chiller_state else None,
            state=record.fsm_state,
        )
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt)
                return int(result.inserted_primary_key[0])
        except SQLAlchemyError as e:
            raise StoreUnavailable("log append", e) from e

    def list_recent(self, limit: int = 50, offset: int = 0) -> List[LogEntry]:
        stmt = select(system_logs).order_by(*_READ_ORDER).limit(limit).offset(offset)
        try:
            with self._engine.connect() as conn:
                return [_row_to_entry(row) for row in conn.execute(stmt)]
        except SQLAlchemyError as e:
            raise StoreUnavailable("log read", e) from e

    def latest(self) -> Optional[LogEntry]:
        entries = self.list_recent(limit=1)
        return entries[0] if entries else None

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                return int(conn.execute(select(func.count()).select_from(system_logs)).scalar_one())
        except SQLAlchemyError as e:
            raise StoreUnavailable("log count", e) from e
