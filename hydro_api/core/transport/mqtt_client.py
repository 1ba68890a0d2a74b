"""Cliente MQTT (paho) para recepción de telemetría y envío de comandos."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Union

import paho.mqtt.client as mqtt

from ..errors import TransportUnavailable
from .base import ITransport, MessageHandler

logger = logging.getLogger(__name__)


class MQTTTransport(ITransport):
    """Cliente MQTT ligero.

    Responsabilidades:
    - Conexión/reconexión al broker (paho reintenta en background)
    - Suscripción a topics (se re-suscribe en cada reconexión)
    - Delegación de mensajes a handlers
    - Publicación con espera de confirmación acotada por timeout
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "hydro-coordinator",
        connect_timeout: float = 10.0,
        publish_timeout: float = 5.0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time())}"
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout

        self._client: Optional[mqtt.Client] = None
        self._connected = threading.Event()
        self._handlers: Dict[str, List[MessageHandler]] = {}
        self._connect_listeners: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    def connect(self) -> bool:
        """Conecta al broker. Devuelve False si no conecta dentro del timeout.

        Aunque devuelva False el loop queda activo y paho sigue reintentando.
        """
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._client.reconnect_delay_set(min_delay=1, max_delay=5)

        if self.username and self.password:
            self._client.username_pw_set(self.username, self.password)

        logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
        self._client.connect_async(self.broker_host, self.broker_port, keepalive=60)
        self._client.loop_start()

        if self._connected.wait(self.connect_timeout):
            return True
        logger.error("[MQTT] Connection timeout after %.1fs (retrying in background)", self.connect_timeout)
        return False

    def disconnect(self) -> None:
        """Desconecta del broker."""
        if self._client:
            try:
                self._client.disconnect()
                self._client.loop_stop()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected.clear()

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def on_message(self, topic: str, handler: MessageHandler) -> None:
        with self._lock:
            self._handlers.setdefault(topic, []).append(handler)
        if self._client is not None and self.is_connected():
            self._client.subscribe(topic, qos=1)
            logger.info("[MQTT] Subscribed to %s", topic)

    def add_connect_listener(self, callback: Callable[[], None]) -> None:
        self._connect_listeners.append(callback)

    def publish(
        self,
        topic: str,
        payload: Union[str, bytes],
        *,
        qos: int = 1,
        retain: bool = False,
        wait: bool = True,
    ) -> None:
        if self._client is None or not self.is_connected():
            raise TransportUnavailable("MQTT broker not available", topic=topic)

        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportUnavailable(
                f"publish rejected: {mqtt.error_string(info.rc)}", topic=topic
            )
        if not wait:
            return

        try:
            info.wait_for_publish(timeout=self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            raise TransportUnavailable(f"publish failed: {e}", topic=topic) from e
        if not info.is_published():
            raise TransportUnavailable(
                f"publish not acknowledged within {self.publish_timeout:.1f}s", topic=topic
            )
        logger.debug("[MQTT] Published mid=%s topic=%s", info.mid, topic)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if reason_code.is_failure:
            self._connected.clear()
            logger.error("[MQTT] Connection failed: %s", reason_code)
            return

        self._connected.set()
        logger.info("[MQTT] Connected to broker")
        with self._lock:
            topics = list(self._handlers)
        for topic in topics:
            client.subscribe(topic, qos=1)
            logger.info("[MQTT] Subscribed to %s", topic)

        for listener in self._connect_listeners:
            try:
                listener()
            except Exception:
                logger.exception("[MQTT] Connect listener failed")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected.clear()
        logger.warning("[MQTT] Disconnected (%s)", reason_code)

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega a los handlers del topic."""
        with self._lock:
            matches = [
                handler
                for topic_filter, handlers in self._handlers.items()
                if mqtt.topic_matches_sub(topic_filter, msg.topic)
                for handler in handlers
            ]
        for handler in matches:
            try:
                handler(msg.topic, msg.payload)
            except Exception:
                # Un handler que falla no debe tirar el loop de paho
                logger.exception("[MQTT] Handler failed (topic=%s)", msg.topic)
