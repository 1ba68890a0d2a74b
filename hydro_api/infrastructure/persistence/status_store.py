"""Almacén del registro de estado actual (system_status).

FUENTE ÚNICA DE VERDAD para modo / chiller / estado FSM.

REGLA DE CONCURRENCIA:
Toda secuencia leer-modificar-escribir pasa por StatusStore.locked(), que
combina un lock en proceso con una transacción que bloquea la fila más nueva
(SELECT ... FOR UPDATE). Reconciler y dispatcher comparten ese scope, así que
un merge de telemetría y un comando manual nunca se pisan.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from ...core.domain import ChillerState, StatusRecord, SystemMode
from ...core.errors import StoreUnavailable
from .schema import system_status

logger = logging.getLogger(__name__)


def _row_to_status(row: Row) -> StatusRecord:
    return StatusRecord(
        id=int(row.id),
        mode=SystemMode(str(row.mode).lower()),
        chiller_status=ChillerState(str(row.chiller_status).upper()),
        fsm_state=str(row.fsm_state),
        record_date=row.record_date,
        record_time=row.record_time,
        created_at=row.created_at,
    )


def _newest_stmt():
    return select(system_status).order_by(system_status.c.id.desc()).limit(1)


class StatusUnitOfWork:
    """Vista transaccional del registro actual dentro de StatusStore.locked()."""

    def __init__(self, conn: Connection):
        self._conn = conn

    def current(self) -> Optional[StatusRecord]:
        row = self._conn.execute(_newest_stmt().with_for_update()).first()
        return _row_to_status(row) if row else None

    def upsert(self, record: StatusRecord) -> StatusRecord:
        """Actualiza en sitio por id; inserta solo si aún no hay fila."""
        values = {
            "mode": record.mode.value,
            "chiller_status": record.chiller_status.value,
            "fsm_state": record.fsm_state,
            "record_date": record.record_date,
            "record_time": record.record_time,
        }
        if record.id is None:
            result = self._conn.execute(insert(system_status).values(**values))
            status_id = int(result.inserted_primary_key[0])
            logger.info("[STATUS] Created system_status id=%d", status_id)
        else:
            status_id = record.id
            self._conn.execute(
                update(system_status).where(system_status.c.id == status_id).values(**values)
            )

        row = self._conn.execute(
            select(system_status).where(system_status.c.id == status_id)
        ).one()
        return _row_to_status(row)


class StatusStore:
    """Acceso a system_status."""

    def __init__(self, engine: Engine, clock: Optional[Callable[[], datetime]] = None):
        self._engine = engine
        self._clock = clock or datetime.now
        self._lock = threading.RLock()

    @contextmanager
    def locked(self, operation: str = "status update") -> Iterator[StatusUnitOfWork]:
        """Scope de escritor único sobre el registro actual."""
        with self._lock:
            try:
                with self._engine.begin() as conn:
                    yield StatusUnitOfWork(conn)
            except SQLAlchemyError as e:
                raise StoreUnavailable(operation, e) from e

    def get_current(self) -> Optional[StatusRecord]:
        """Lectura sin lock: la fila más nueva por id."""
        try:
            with self._engine.connect() as conn:
                row = conn.execute(_newest_stmt()).first()
        except SQLAlchemyError as e:
            raise StoreUnavailable("status read", e) from e
        return _row_to_status(row) if row else None

    def ensure_initialized(self) -> StatusRecord:
        """Crea la fila inicial (auto / OFF / S0) si la tabla está vacía."""
        with self.locked("status init") as uow:
            current = uow.current()
            if current is not None:
                return current
            created = uow.upsert(StatusRecord.defaults(self._clock()))
        logger.info("[STATUS] Initialized system_status with default 'auto' mode")
        return created
