from __future__ import annotations

from datetime import date, datetime, time
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ModeUpdateIn(BaseModel):
    # Se valida en el endpoint para devolver el mensaje del dashboard
    mode: Optional[str] = None


class ChillerControlIn(BaseModel):
    action: Optional[str] = None


class StatusOut(BaseModel):
    id: Optional[int] = None
    mode: str = "auto"
    record_date: Optional[date] = None
    record_time: Optional[time] = None
    chiller_status: Optional[str] = None
    fsm_state: Optional[str] = None
    created_at: Optional[datetime] = None


class LogEntryOut(BaseModel):
    id: int
    record_date: date
    record_time: time
    ldr_value: Optional[int] = None
    battery_voltage: Optional[float] = None
    temperature: Optional[float] = None
    # El dashboard espera "" en lugar de null para estas dos columnas
    chiller: str = ""
    state: str = ""
    created_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class LogsPage(BaseModel):
    success: bool = True
    data: List[LogEntryOut] = Field(default_factory=list)
    pagination: Pagination
