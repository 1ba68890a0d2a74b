"""Abstract interface for the pub/sub transport.

Decouples ingestion and control from paho details. Any transport (MQTT,
in-memory for tests) can implement this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Union

MessageHandler = Callable[[str, bytes], None]


class ITransport(ABC):
    """Abstract pub/sub transport.

    Implementations:
    - MQTTTransport: paho-mqtt against the external broker
    """

    @abstractmethod
    def publish(
        self,
        topic: str,
        payload: Union[str, bytes],
        *,
        qos: int = 1,
        retain: bool = False,
        wait: bool = True,
    ) -> None:
        """Publish a message.

        With wait=True the call returns only after the broker acknowledged
        the message (PUBACK for QoS 1) and raises TransportUnavailable on
        failure or timeout. wait=False only queues it.
        """

    @abstractmethod
    def on_message(self, topic: str, handler: MessageHandler) -> None:
        """Register a handler for a topic filter (wildcards allowed)."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the transport is connected."""

    def add_connect_listener(self, callback: Callable[[], None]) -> None:
        """Called after every (re)connection. Default: no-op."""
