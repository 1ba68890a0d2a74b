"""Publicación ordenada de comandos.

El firmware solo acepta CHILLER=... si su modo local ya es MANUAL, así que
los comandos de una secuencia se publican uno a uno:

    publish(1) → esperar PUBACK (timeout) → settle → publish(2) → ...

Si un paso falla, los siguientes NO se envían.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from ..core.transport import ITransport

logger = logging.getLogger(__name__)


class CommandSequencer:

    def __init__(
        self,
        transport: ITransport,
        topic: str,
        settle_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._transport = transport
        self._topic = topic
        self._settle_seconds = max(0.0, settle_seconds)
        self._sleep = sleep

    @property
    def topic(self) -> str:
        return self._topic

    def send(self, payloads: Sequence[str]) -> None:
        """Publica los payloads en orden, cada uno confirmado antes del siguiente.

        Raises:
            TransportUnavailable: si algún paso no se pudo entregar al broker
        """
        for index, payload in enumerate(payloads):
            if index > 0 and self._settle_seconds:
                # Margen para que el dispositivo procese el comando anterior
                self._sleep(self._settle_seconds)
            self._transport.publish(self._topic, payload, qos=1, wait=True)
            logger.info("[DISPATCHER] Sent command %s (topic=%s)", payload, self._topic)
