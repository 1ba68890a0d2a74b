"""Errores del coordinador.

Cada tipo se reporta en un límite distinto:
- MalformedField: solo dentro del parser (se degrada a campo ausente/default)
- StoreUnavailable: al llamador inmediato (log writer, reconciler, dispatcher)
- PreconditionFailed: al llamador de la API, antes de cualquier mutación
- TransportUnavailable: al llamador de la API; lo ya guardado NO se revierte
"""

from __future__ import annotations

from typing import Optional


class CoordinatorError(Exception):
    """Base de todos los errores del coordinador."""


class MalformedField(CoordinatorError):
    """Un token del protocolo está presente pero no es válido."""

    def __init__(self, field: str, raw: str, reason: str):
        self.field = field
        self.raw = raw
        self.reason = reason
        super().__init__(f"{field}={raw!r}: {reason}")


class StoreUnavailable(CoordinatorError):
    """Fallo de lectura/escritura en la base de datos."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"store unavailable during {operation}{detail}")


class PreconditionFailed(CoordinatorError):
    """Operación rechazada por el estado actual (mode gate)."""


class TransportUnavailable(CoordinatorError):
    """El broker MQTT no aceptó o no confirmó la publicación."""

    def __init__(self, message: str, topic: Optional[str] = None):
        self.topic = topic
        super().__init__(message)
