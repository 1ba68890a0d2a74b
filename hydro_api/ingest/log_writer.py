"""Escritor del log de telemetría (único escritor de system_logs)."""

from __future__ import annotations

import logging

from ..core.domain import TelemetryRecord
from ..core.errors import StoreUnavailable
from ..infrastructure.persistence import LogStore

logger = logging.getLogger(__name__)


class TelemetryLogWriter:
    """Agrega una fila por cada registro parseado. Nunca muta filas previas."""

    def __init__(self, store: LogStore):
        self._store = store

    def append(self, record: TelemetryRecord) -> int:
        """Persiste el registro completo (ausentes como NULL).

        Raises:
            StoreUnavailable: si la BD no acepta el INSERT
        """
        try:
            entry_id = self._store.append(record)
        except StoreUnavailable as e:
            logger.error("[LOG_WRITER] Append failed: %s", e)
            raise

        logger.info(
            "[LOG_WRITER] Stored id=%d date=%s time=%s ldr=%s vb=%s temp=%s",
            entry_id,
            record.record_date.isoformat(),
            record.record_time.isoformat(),
            record.ldr_value,
            record.battery_voltage,
            record.temperature,
        )
        return entry_id
