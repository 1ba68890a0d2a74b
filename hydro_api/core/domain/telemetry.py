"""Registro de telemetría producido por el parser (efímero, uno por mensaje)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Any, Optional


class ChillerState(str, Enum):
    ON = "ON"
    OFF = "OFF"


class OperatingMode(str, Enum):
    """Modo tal como lo reporta el firmware (mayúsculas)."""

    AUTO = "AUTO"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class TelemetryRecord:
    """Una línea de telemetría decodificada.

    record_date / record_time siempre están poblados (parseados o reloj de
    ingesta). Todo lo demás es None si no vino en el mensaje; nunca se
    rellena con placeholders.
    """

    record_date: date
    record_time: time
    ldr_value: Optional[int] = None
    battery_voltage: Optional[float] = None
    temperature: Optional[float] = None
    chiller_state: Optional[ChillerState] = None
    fsm_state: Optional[str] = None
    operating_mode: Optional[OperatingMode] = None

    @property
    def has_status_fields(self) -> bool:
        """True si trae algo que el reconciler deba aplicar."""
        return (
            self.chiller_state is not None
            or self.fsm_state is not None
            or self.operating_mode is not None
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_date": self.record_date.isoformat(),
            "record_time": self.record_time.isoformat(),
            "ldr_value": self.ldr_value,
            "battery_voltage": self.battery_voltage,
            "temperature": self.temperature,
            "chiller": self.chiller_state.value if self.chiller_state else None,
            "state": self.fsm_state,
            "mode": self.operating_mode.value if self.operating_mode else None,
        }
