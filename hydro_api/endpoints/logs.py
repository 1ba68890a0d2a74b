"""Lectura del log de telemetría."""

import math

from fastapi import APIRouter, Depends, Query

from ..coordinator import Coordinator, get_coordinator
from ..schemas import Envelope, LogEntryOut, LogsPage, Pagination
from ._mappers import log_entry_out

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.get("", response_model=LogsPage)
def list_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=1000),
    coordinator: Coordinator = Depends(get_coordinator),
):
    """Logs paginados, más recientes primero."""
    offset = (page - 1) * limit
    total = coordinator.log_store.count()
    entries = coordinator.log_store.list_recent(limit=limit, offset=offset)
    return LogsPage(
        data=[log_entry_out(entry) for entry in entries],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            totalPages=math.ceil(total / limit),
        ),
    )


@router.get("/latest", response_model=Envelope[LogEntryOut])
def latest_log(coordinator: Coordinator = Depends(get_coordinator)):
    entry = coordinator.log_store.latest()
    return Envelope[LogEntryOut](data=log_entry_out(entry) if entry else None)
