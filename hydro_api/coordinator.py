"""Ensamblado del coordinador y gestión del singleton.

Un único Coordinator por proceso: comparte el StatusStore (y por lo tanto
su lock de escritor único) entre la ingesta MQTT y la API HTTP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from common.config import Settings, get_settings
from common.db import get_engine
from .control import CommandDispatcher, CommandSequencer, StatusBroadcaster
from .core.protocol import TelemetryParser
from .core.transport import ITransport, MQTTTransport
from .infrastructure.persistence import LogStore, StatusStore, ensure_schema
from .ingest import StatusReconciler, TelemetryLogWriter, TelemetryPipeline
from .mqtt import TelemetryReceiver

logger = logging.getLogger(__name__)


@dataclass
class Coordinator:
    settings: Settings
    engine: Engine
    transport: ITransport
    log_store: LogStore
    status_store: StatusStore
    pipeline: TelemetryPipeline
    receiver: TelemetryReceiver
    dispatcher: CommandDispatcher
    broadcaster: StatusBroadcaster

    def init_storage(self) -> None:
        """Crea el esquema y la fila inicial de system_status."""
        ensure_schema(self.engine)
        self.status_store.ensure_initialized()

    def start(self, *, ingest: bool = True) -> None:
        self.init_storage()
        self.transport.add_connect_listener(self.broadcaster.publish_current)
        if ingest:
            self.receiver.start()
        if isinstance(self.transport, MQTTTransport):
            self.transport.connect()
        logger.info("[COORDINATOR] Started (ingest=%s)", ingest)

    def stop(self) -> None:
        self.receiver.stop()
        if isinstance(self.transport, MQTTTransport):
            self.transport.disconnect()
        logger.info("[COORDINATOR] Stopped")


def build_coordinator(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    transport: Optional[ITransport] = None,
    clock: Optional[Callable[[], datetime]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Coordinator:
    settings = settings or get_settings()
    engine = engine or get_engine()
    transport = transport or MQTTTransport(
        broker_host=settings.mqtt_host,
        broker_port=settings.mqtt_port,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
        client_id=settings.mqtt_client_id,
        connect_timeout=settings.connect_timeout_seconds,
        publish_timeout=settings.publish_timeout_seconds,
    )
    clock = clock or datetime.now

    log_store = LogStore(engine)
    status_store = StatusStore(engine, clock=clock)

    pipeline = TelemetryPipeline(
        parser=TelemetryParser(clock),
        log_writer=TelemetryLogWriter(log_store),
        reconciler=StatusReconciler(status_store, clock=clock),
    )
    receiver = TelemetryReceiver(
        transport,
        pipeline,
        topic=settings.telemetry_topic,
        num_workers=settings.ingest_num_workers,
        queue_size=settings.ingest_queue_size,
    )

    sequencer_kwargs = {"sleep": sleep} if sleep is not None else {}
    sequencer = CommandSequencer(
        transport,
        settings.control_topic,
        settle_seconds=settings.command_settle_seconds,
        **sequencer_kwargs,
    )
    broadcaster = StatusBroadcaster(transport, status_store, settings.status_topic)
    dispatcher = CommandDispatcher(status_store, sequencer, broadcaster, clock=clock)

    return Coordinator(
        settings=settings,
        engine=engine,
        transport=transport,
        log_store=log_store,
        status_store=status_store,
        pipeline=pipeline,
        receiver=receiver,
        dispatcher=dispatcher,
        broadcaster=broadcaster,
    )


# Singleton
_coordinator: Optional[Coordinator] = None


def get_coordinator() -> Coordinator:
    """Obtiene el coordinador singleton (dependencia FastAPI)."""
    global _coordinator
    if _coordinator is None:
        _coordinator = build_coordinator()
    return _coordinator

