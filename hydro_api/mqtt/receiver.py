"""Receptor de telemetría (ingestion loop).

Flujo:
  MQTT topic hydro/data
  → TelemetryReceiver (este archivo)
  → [AsyncTelemetryProcessor]
  → TelemetryPipeline: envelope → parser → log writer + reconciler
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.transport import ITransport
from ..ingest.pipeline import IngestOutcome, TelemetryPipeline
from .async_processor import AsyncTelemetryProcessor, create_async_processor
from .receiver_stats import ReceiverStats

logger = logging.getLogger(__name__)


class TelemetryReceiver:
    """Escucha el topic de telemetría y procesa cada mensaje una vez."""

    def __init__(
        self,
        transport: ITransport,
        pipeline: TelemetryPipeline,
        topic: str = "hydro/data",
        num_workers: int = 0,
        queue_size: int = 1000,
    ):
        self._transport = transport
        self._pipeline = pipeline
        self._topic = topic
        self._num_workers = num_workers
        self._queue_size = queue_size
        self._async_processor: Optional[AsyncTelemetryProcessor] = None
        self._running = False
        self._stats = ReceiverStats()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> ReceiverStats:
        return self._stats

    def start(self) -> None:
        if self._running:
            return
        self._async_processor = create_async_processor(
            self.handle_payload,
            queue_size=self._queue_size,
            num_workers=self._num_workers,
        )
        self._transport.on_message(self._topic, self._on_message)
        self._running = True
        logger.info("[INGEST] Listening on %s", self._topic)

    def stop(self) -> None:
        self._running = False
        processor, self._async_processor = self._async_processor, None
        if processor is not None:
            processor.stop(drain=True)
        logger.info("[INGEST] Stopped. %s", self._stats)

    def _on_message(self, topic: str, payload: bytes) -> None:
        if not self._running:
            return
        self._stats.mark_received()
        logger.debug("[INGEST] [%s] %r", topic, payload)

        # Una sola lectura: stop() puede ponerlo en None desde otro thread
        processor = self._async_processor
        if processor is not None:
            if not processor.enqueue(payload):
                self._stats.mark_dropped()
            return
        self.handle_payload(payload)

    def handle_payload(self, payload: bytes) -> IngestOutcome:
        """Procesa un payload ya recibido (thread de paho o worker)."""
        outcome = self._pipeline.process(payload)
        self._stats.record(outcome)
        return outcome

    def health_check(self) -> dict:
        processor = self._async_processor
        return {
            "running": self._running,
            "connected": self._transport.is_connected(),
            "topic": self._topic,
            "stats": self._stats.to_dict(),
            "async_processor": processor.metrics if processor else None,
        }
