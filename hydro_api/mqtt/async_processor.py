"""Procesamiento en background de los mensajes de telemetría.

El callback de paho corre en el thread de red del cliente: si escribiera en
la BD directamente, un INSERT lento frenaría keepalives y PUBACKs. Con
INGEST_NUM_WORKERS > 0 el callback solo encola y N workers ejecutan el
pipeline.

    paho thread ──enqueue()──► Queue(maxsize) ──► telemetry-worker-0..N-1

Cola llena → el mensaje se descarta y se cuenta (no hay reintento). El
orden entre actualizaciones de estado lo impone StatusStore.locked(), no
la cola.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import asdict, dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_NUM_WORKERS = 4

# Marca de fin para cada worker
_STOP = object()


@dataclass
class _Counters:
    enqueued: int = 0
    dropped: int = 0
    processed: int = 0
    errors: int = 0


class AsyncTelemetryProcessor:
    """Cola acotada + workers para un handler de payloads."""

    def __init__(
        self,
        handler: Callable[[bytes], Any],
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ):
        self._handler = handler
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=max_queue_size)
        self._num_workers = max(1, num_workers)
        self._counters = _Counters()
        self._lock = threading.Lock()
        # Serializa enqueue() con el cierre: nada entra detrás de las marcas de fin
        self._gate = threading.Lock()
        self._closed = False
        self._workers: List[threading.Thread] = []

    def start(self) -> None:
        self._workers = [
            threading.Thread(target=self._run, args=(i,), daemon=True, name=f"telemetry-worker-{i}")
            for i in range(self._num_workers)
        ]
        for worker in self._workers:
            worker.start()
        logger.info("[ASYNC_PROC] %d workers, queue_max=%d", self._num_workers, self._queue.maxsize)

    def stop(self, drain: bool = True) -> None:
        """Detiene los workers; con drain=True procesa antes lo pendiente."""
        with self._gate:
            self._closed = True
        if not drain:
            self._discard_pending()
        for _ in self._workers:
            # put bloqueante: la marca de fin nunca se descarta
            self._queue.put(_STOP)
        for worker in self._workers:
            worker.join(timeout=5.0)
        self._workers = []
        logger.info("[ASYNC_PROC] Stopped %s", self.metrics)

    def enqueue(self, payload: bytes) -> bool:
        """No bloquea. False si la cola está llena o el processor ya se detuvo."""
        with self._gate:
            if self._closed:
                accepted, reason = False, "stopped"
            else:
                try:
                    self._queue.put_nowait(payload)
                    accepted, reason = True, ""
                except queue.Full:
                    accepted, reason = False, "queue full"
        if not accepted:
            self._bump("dropped")
            logger.warning("[ASYNC_PROC] Dropped %d bytes (%s)", len(payload), reason)
            return False
        self._bump("enqueued")
        return True

    @property
    def metrics(self) -> dict:
        with self._lock:
            snapshot = asdict(self._counters)
        snapshot["queue_depth"] = self._queue.qsize()
        snapshot["queue_max"] = self._queue.maxsize
        return snapshot

    def _bump(self, counter: str) -> None:
        with self._lock:
            setattr(self._counters, counter, getattr(self._counters, counter) + 1)

    def _discard_pending(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _run(self, worker_id: int) -> None:
        while True:
            payload = self._queue.get()
            if payload is _STOP:
                return
            try:
                self._handler(payload)
            except Exception:
                # El pipeline ya reporta fallos de BD; esto es un bug del handler
                self._bump("errors")
                logger.exception("[ASYNC_PROC] Worker %d failed on payload %r", worker_id, payload)
            else:
                self._bump("processed")


def create_async_processor(
    handler: Callable[[bytes], Any],
    queue_size: int = DEFAULT_QUEUE_SIZE,
    num_workers: int = DEFAULT_NUM_WORKERS,
) -> Optional[AsyncTelemetryProcessor]:
    """Crea y arranca el processor; None → procesamiento síncrono en el thread de paho."""
    if num_workers <= 0:
        logger.info("[ASYNC_PROC] Disabled (INGEST_NUM_WORKERS=%d)", num_workers)
        return None

    processor = AsyncTelemetryProcessor(handler, max_queue_size=queue_size, num_workers=num_workers)
    processor.start()
    return processor
