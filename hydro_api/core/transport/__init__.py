"""Transporte pub/sub (MQTT)."""

from .base import ITransport, MessageHandler
from .mqtt_client import MQTTTransport

__all__ = ["ITransport", "MessageHandler", "MQTTTransport"]
