"""Conversión dominio → schemas de respuesta."""

from __future__ import annotations

from ..core.domain import LogEntry, StatusRecord
from ..schemas import LogEntryOut, StatusOut


def status_out(record: StatusRecord) -> StatusOut:
    return StatusOut(
        id=record.id,
        mode=record.mode.value,
        record_date=record.record_date,
        record_time=record.record_time,
        chiller_status=record.chiller_status.value,
        fsm_state=record.fsm_state,
        created_at=record.created_at,
    )


def log_entry_out(entry: LogEntry) -> LogEntryOut:
    record = entry.record
    return LogEntryOut(
        id=entry.id,
        record_date=record.record_date,
        record_time=record.record_time,
        ldr_value=record.ldr_value,
        battery_voltage=record.battery_voltage,
        temperature=record.temperature,
        chiller=record.chiller_state.value if record.chiller_state else "",
        state=record.fsm_state or "",
        created_at=entry.created_at,
    )
