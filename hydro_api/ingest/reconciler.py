"""Reconciliación del estado reportado por el dispositivo.

Merge campo a campo sobre el registro actual de system_status:
- chiller_status ← CHILLER, fsm_state ← STATE, mode ← MODE (minúsculas)
- record_date / record_time ← fecha y hora del registro
- Lo ausente en el mensaje conserva el valor guardado

Si el mensaje no trae CHILLER, STATE ni MODE no se escribe nada.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.domain import StatusRecord, TelemetryRecord
from ..core.errors import StoreUnavailable
from ..infrastructure.persistence import StatusStore

logger = logging.getLogger(__name__)


class StatusReconciler:

    def __init__(self, store: StatusStore, clock: Optional[Callable[[], datetime]] = None):
        self._store = store
        self._clock = clock or datetime.now

    def reconcile(self, record: TelemetryRecord) -> Optional[StatusRecord]:
        """Aplica el registro al estado actual.

        Returns:
            El StatusRecord resultante, o None si el registro no traía campos
            de estado (no-op: no se toca la BD).

        Raises:
            StoreUnavailable: si falla la lectura o escritura del estado
        """
        if not record.has_status_fields:
            logger.debug("[RECONCILER] No status fields, skipping")
            return None

        try:
            with self._store.locked("status reconcile") as uow:
                current = uow.current()
                if current is None:
                    # Sin fila todavía: se crea con defaults + lo que trae el mensaje
                    current = StatusRecord.defaults(self._clock())
                updated = uow.upsert(current.merge(record))
        except StoreUnavailable as e:
            logger.error("[RECONCILER] Status update failed: %s", e)
            raise

        logger.info(
            "[RECONCILER] Updated system_status id=%s chiller=%s state=%s mode=%s",
            updated.id,
            updated.chiller_status.value,
            updated.fsm_state,
            updated.mode.value,
        )
        return updated
