"""Statistics for the telemetry receiver."""

from __future__ import annotations

import threading
import time

from ..ingest.pipeline import IngestOutcome


class ReceiverStats:
    """Estadísticas del receptor MQTT (thread-safe, los workers escriben en paralelo)."""

    def __init__(self):
        self.received = 0
        self.logged = 0
        self.status_updates = 0
        self.status_skipped = 0
        self.failed = 0
        self.dropped = 0
        self.malformed_fields = 0
        self.last_message_at: float = 0
        self._lock = threading.Lock()

    def mark_received(self) -> None:
        with self._lock:
            self.received += 1
            self.last_message_at = time.time()

    def mark_dropped(self) -> None:
        with self._lock:
            self.dropped += 1

    def record(self, outcome: IngestOutcome) -> None:
        with self._lock:
            self.malformed_fields += len(outcome.malformed_fields)
            if outcome.logged:
                self.logged += 1
            if outcome.status_written:
                self.status_updates += 1
            elif outcome.status_error is None:
                self.status_skipped += 1
            if outcome.failed:
                self.failed += 1

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} logged={self.logged} "
            f"status_updates={self.status_updates} failed={self.failed} dropped={self.dropped}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        with self._lock:
            return {
                "received": self.received,
                "logged": self.logged,
                "status_updates": self.status_updates,
                "status_skipped": self.status_skipped,
                "failed": self.failed,
                "dropped": self.dropped,
                "malformed_fields": self.malformed_fields,
                "last_message_at": self.last_message_at,
            }
