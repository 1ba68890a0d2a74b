"""Pipeline por mensaje: envelope → parser → (log writer, reconciler).

GARANTÍAS:
- El parser se invoca una sola vez por mensaje
- Log writer y reconciler se ejecutan siempre los dos; el fallo de uno no
  bloquea al otro y cada resultado se reporta por separado
- Sin reintentos: el mensaje se descarta después de procesarlo
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

import orjson
from prometheus_client import Counter

from ..core.domain import StatusRecord, TelemetryRecord
from ..core.errors import StoreUnavailable
from ..core.protocol import TelemetryParser
from .log_writer import TelemetryLogWriter
from .reconciler import StatusReconciler

logger = logging.getLogger(__name__)

TELEMETRY_WRITES = Counter(
    "hydro_telemetry_writes_total",
    "Telemetry side effects per message",
    ["target", "status"],  # target: log|status; status: ok|skipped|failed
)
TELEMETRY_MALFORMED_FIELDS = Counter(
    "hydro_telemetry_malformed_fields_total",
    "Protocol tokens discarded by the parser",
    ["field"],
)


def decode_envelope(payload: Union[bytes, str]) -> str:
    """Extrae la línea de protocolo del payload MQTT.

    Productores legacy envían {"data": "<línea>"}; el resto envía la línea
    cruda. Si el payload no es ese wrapper se usa completo.
    """
    if isinstance(payload, bytes):
        text = payload.decode("utf-8", errors="replace")
    else:
        text = payload

    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError:
        return text.strip()

    if isinstance(data, dict):
        inner = data.get("data")
        if isinstance(inner, str) and inner:
            return inner.strip()
    return text.strip()


@dataclass
class IngestOutcome:
    """Resultado de un mensaje: dos escrituras reportadas por separado."""

    line: str
    record: TelemetryRecord
    malformed_fields: List[str] = field(default_factory=list)
    log_entry_id: Optional[int] = None
    log_error: Optional[str] = None
    status: Optional[StatusRecord] = None
    status_error: Optional[str] = None

    @property
    def logged(self) -> bool:
        return self.log_entry_id is not None

    @property
    def status_written(self) -> bool:
        return self.status is not None

    @property
    def failed(self) -> bool:
        return self.log_error is not None or self.status_error is not None


class TelemetryPipeline:
    """Procesa un mensaje de telemetría de punta a punta."""

    def __init__(
        self,
        parser: TelemetryParser,
        log_writer: TelemetryLogWriter,
        reconciler: StatusReconciler,
    ):
        self._parser = parser
        self._log_writer = log_writer
        self._reconciler = reconciler

    def process(self, payload: Union[bytes, str]) -> IngestOutcome:
        line = decode_envelope(payload)
        record, issues = self._parser.parse_with_diagnostics(line)
        outcome = IngestOutcome(
            line=line,
            record=record,
            malformed_fields=[issue.field for issue in issues],
        )
        for issue in issues:
            TELEMETRY_MALFORMED_FIELDS.labels(field=issue.field).inc()

        try:
            outcome.log_entry_id = self._log_writer.append(record)
            TELEMETRY_WRITES.labels(target="log", status="ok").inc()
        except StoreUnavailable as e:
            outcome.log_error = str(e)
            TELEMETRY_WRITES.labels(target="log", status="failed").inc()

        try:
            outcome.status = self._reconciler.reconcile(record)
            TELEMETRY_WRITES.labels(
                target="status", status="ok" if outcome.status is not None else "skipped"
            ).inc()
        except StoreUnavailable as e:
            outcome.status_error = str(e)
            TELEMETRY_WRITES.labels(target="status", status="failed").inc()

        if outcome.failed:
            logger.error(
                "[INGEST] Partial failure log_error=%s status_error=%s raw=%r",
                outcome.log_error,
                outcome.status_error,
                line,
            )
        return outcome
