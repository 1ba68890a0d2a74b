"""MQTT Receiver para telemetría.

Estructura modular:
- receiver.py: suscripción al topic de telemetría y despacho al pipeline
- async_processor.py: cola + workers para liberar el thread de paho
- receiver_stats.py: contadores del receptor
"""

from .async_processor import AsyncTelemetryProcessor, create_async_processor
from .receiver import TelemetryReceiver
from .receiver_stats import ReceiverStats

__all__ = [
    "AsyncTelemetryProcessor",
    "create_async_processor",
    "TelemetryReceiver",
    "ReceiverStats",
]
