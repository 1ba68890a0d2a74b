"""Persistencia en PostgreSQL (system_logs, system_status)."""

from .schema import ensure_schema, metadata, system_logs, system_status
from .log_store import LogStore
from .status_store import StatusStore, StatusUnitOfWork

__all__ = [
    "ensure_schema",
    "metadata",
    "system_logs",
    "system_status",
    "LogStore",
    "StatusStore",
    "StatusUnitOfWork",
]
