"""Ingesta de telemetría: log append-only + reconciliación de estado."""

from .log_writer import TelemetryLogWriter
from .reconciler import StatusReconciler
from .pipeline import IngestOutcome, TelemetryPipeline, decode_envelope

__all__ = [
    "TelemetryLogWriter",
    "StatusReconciler",
    "IngestOutcome",
    "TelemetryPipeline",
    "decode_envelope",
]
