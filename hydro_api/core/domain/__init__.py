"""Modelos de dominio del coordinador."""

from .telemetry import ChillerState, OperatingMode, TelemetryRecord
from .status import LogEntry, StatusRecord, SystemMode

__all__ = [
    "ChillerState",
    "OperatingMode",
    "TelemetryRecord",
    "LogEntry",
    "StatusRecord",
    "SystemMode",
]
