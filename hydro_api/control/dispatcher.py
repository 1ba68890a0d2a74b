"""Dispatcher de comandos manuales.

set_mode(mode)
    Actualiza el modo del registro actual (crea la fila si no existe) y
    publica el broadcast de estado (best effort).

control_actuator(action)
    Solo válido con modo manual (mode gate). En orden:
    1. chiller_status + fecha/hora en system_status
    2. MODE=MANUAL al canal de control
    3. CHILLER=<ON|OFF>, solo después de confirmado (2)

    Si el broker no está disponible el paso 1 NO se revierte: la intención
    queda registrada y el llamador recibe TransportUnavailable.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from prometheus_client import Counter

from ..core.domain import ChillerState, StatusRecord, SystemMode
from ..core.errors import PreconditionFailed, StoreUnavailable, TransportUnavailable
from ..infrastructure.persistence import StatusStore
from .broadcast import StatusBroadcaster
from .sequencer import CommandSequencer

logger = logging.getLogger(__name__)

CONTROL_REQUESTS = Counter(
    "hydro_control_requests_total",
    "Operator control requests",
    ["operation", "status"],  # status: ok|rejected|store_failed|transport_failed
)

MODE_ASSERT_COMMAND = "MODE=MANUAL"


def chiller_command(action: ChillerState) -> str:
    return f"CHILLER={action.value}"


class CommandDispatcher:

    def __init__(
        self,
        store: StatusStore,
        sequencer: CommandSequencer,
        broadcaster: Optional[StatusBroadcaster] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._sequencer = sequencer
        self._broadcaster = broadcaster
        self._clock = clock or datetime.now
        # Serializa secuencias de actuador completas (update + 2 publish)
        self._command_lock = threading.Lock()

    def set_mode(self, mode: SystemMode) -> StatusRecord:
        try:
            with self._store.locked("mode update") as uow:
                current = uow.current() or StatusRecord.defaults(self._clock())
                updated = uow.upsert(replace(current, mode=mode))
        except StoreUnavailable:
            CONTROL_REQUESTS.labels(operation="set_mode", status="store_failed").inc()
            raise

        logger.info("[DISPATCHER] Mode updated to %s (status id=%s)", updated.mode.value, updated.id)
        CONTROL_REQUESTS.labels(operation="set_mode", status="ok").inc()
        if self._broadcaster is not None:
            self._broadcaster.publish_mode(updated.mode)
        return updated

    def control_actuator(self, action: ChillerState) -> StatusRecord:
        """Raises PreconditionFailed, StoreUnavailable o TransportUnavailable."""
        with self._command_lock:
            try:
                with self._store.locked("chiller update") as uow:
                    current = uow.current()
                    if current is None or not current.is_manual:
                        raise PreconditionFailed(
                            "Chiller can only be controlled manually in MANUAL mode"
                        )
                    now = self._clock()
                    updated = uow.upsert(
                        replace(
                            current,
                            chiller_status=action,
                            record_date=now.date(),
                            record_time=now.time().replace(microsecond=0),
                        )
                    )
            except PreconditionFailed:
                logger.warning("[DISPATCHER] Chiller %s rejected: mode is not manual", action.value)
                CONTROL_REQUESTS.labels(operation="chiller", status="rejected").inc()
                raise
            except StoreUnavailable:
                CONTROL_REQUESTS.labels(operation="chiller", status="store_failed").inc()
                raise

            try:
                self._sequencer.send([MODE_ASSERT_COMMAND, chiller_command(action)])
            except TransportUnavailable as e:
                logger.warning(
                    "[DISPATCHER] Chiller %s stored but not sent: %s", action.value, e
                )
                CONTROL_REQUESTS.labels(operation="chiller", status="transport_failed").inc()
                raise

        CONTROL_REQUESTS.labels(operation="chiller", status="ok").inc()
        return updated
