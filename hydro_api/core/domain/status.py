"""Registros persistentes: estado actual (singleton) y entradas de log."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from .telemetry import ChillerState, OperatingMode, TelemetryRecord


class SystemMode(str, Enum):
    """Modo autoritativo guardado en system_status (minúsculas)."""

    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def from_operating_mode(cls, mode: OperatingMode) -> "SystemMode":
        return cls(mode.value.lower())


DEFAULT_MODE = SystemMode.AUTO
DEFAULT_CHILLER = ChillerState.OFF
DEFAULT_FSM_STATE = "S0"


@dataclass(frozen=True)
class StatusRecord:
    """Fila lógica "actual" de system_status (la más nueva por id)."""

    mode: SystemMode
    chiller_status: ChillerState
    fsm_state: str
    record_date: date
    record_time: time
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def defaults(cls, now: datetime) -> "StatusRecord":
        return cls(
            mode=DEFAULT_MODE,
            chiller_status=DEFAULT_CHILLER,
            fsm_state=DEFAULT_FSM_STATE,
            record_date=now.date(),
            record_time=now.time().replace(microsecond=0),
        )

    @property
    def is_manual(self) -> bool:
        return self.mode == SystemMode.MANUAL

    def merge(self, record: TelemetryRecord) -> "StatusRecord":
        """Merge campo a campo: lo presente sobrescribe, lo ausente se conserva."""
        changes: dict[str, Any] = {
            "record_date": record.record_date,
            "record_time": record.record_time,
        }
        if record.chiller_state is not None:
            changes["chiller_status"] = record.chiller_state
        if record.fsm_state is not None:
            changes["fsm_state"] = record.fsm_state
        if record.operating_mode is not None:
            changes["mode"] = SystemMode.from_operating_mode(record.operating_mode)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "mode": self.mode.value,
            "chiller_status": self.chiller_status.value,
            "fsm_state": self.fsm_state,
            "record_date": self.record_date.isoformat(),
            "record_time": self.record_time.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class LogEntry:
    """Fila inmutable de system_logs."""

    id: int
    record: TelemetryRecord
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        row = self.record.to_dict()
        row.pop("mode")  # system_logs no guarda el modo
        row["id"] = self.id
        row["created_at"] = self.created_at.isoformat() if self.created_at else None
        return row
