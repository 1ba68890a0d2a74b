"""Broadcast retenido del modo del sistema hacia el dispositivo."""

from __future__ import annotations

import logging
from typing import Optional

import orjson

from ..core.domain import SystemMode
from ..core.errors import StoreUnavailable, TransportUnavailable
from ..core.transport import ITransport
from ..infrastructure.persistence import StatusStore

logger = logging.getLogger(__name__)


class StatusBroadcaster:
    """Publica {"mode": "auto"|"manual"} retenido en el topic de estado."""

    def __init__(self, transport: ITransport, store: StatusStore, topic: str):
        self._transport = transport
        self._store = store
        self._topic = topic

    def publish_mode(self, mode: SystemMode, *, wait: bool = True) -> bool:
        """Best effort: devuelve False (y loguea) si el broker no está disponible."""
        payload = orjson.dumps({"mode": mode.value})
        try:
            self._transport.publish(self._topic, payload, qos=1, retain=True, wait=wait)
        except TransportUnavailable as e:
            logger.warning("[BROADCAST] Mode %s not published: %s", mode.value, e)
            return False
        logger.info("[BROADCAST] Published system mode: %s", mode.value)
        return True

    def publish_current(self) -> bool:
        """Publica el modo guardado; auto si no hay fila o la BD no responde.

        Se llama desde el callback de conexión de paho, por eso no espera PUBACK.
        """
        mode: Optional[SystemMode] = None
        try:
            current = self._store.get_current()
            mode = current.mode if current else None
        except StoreUnavailable as e:
            logger.error("[BROADCAST] Could not read system_status: %s", e)
        return self.publish_mode(mode or SystemMode.AUTO, wait=False)
