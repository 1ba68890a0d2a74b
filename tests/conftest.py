"""Fixtures compartidos: BD SQLite en memoria, transporte falso y reloj fijo."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from common.config import Settings
from hydro_api.coordinator import build_coordinator
from hydro_api.core.errors import TransportUnavailable
from hydro_api.core.transport import ITransport, MessageHandler
from hydro_api.infrastructure.persistence import LogStore, StatusStore, ensure_schema

FIXED_NOW = datetime(2025, 6, 1, 12, 30, 45)


class RecordingTransport(ITransport):
    """Transporte en memoria que registra lo publicado, en orden."""

    def __init__(self):
        self.connected = True
        self.published: List[Tuple[str, Union[str, bytes], int, bool]] = []
        self.events: List[str] = []
        self.fail_payloads: set = set()
        self.handlers: Dict[str, List[MessageHandler]] = {}
        self.listeners: List[Callable[[], None]] = []

    def publish(self, topic, payload, *, qos=1, retain=False, wait=True):
        if not self.connected:
            raise TransportUnavailable("MQTT broker not available", topic=topic)
        if payload in self.fail_payloads:
            raise TransportUnavailable("publish not acknowledged", topic=topic)
        self.published.append((topic, payload, qos, retain))
        self.events.append(f"publish:{payload if isinstance(payload, str) else payload.decode()}")

    def on_message(self, topic, handler):
        self.handlers.setdefault(topic, []).append(handler)

    def is_connected(self):
        return self.connected

    def add_connect_listener(self, callback):
        self.listeners.append(callback)

    def deliver(self, topic: str, payload: Union[str, bytes]) -> None:
        data = payload.encode() if isinstance(payload, str) else payload
        for handler in self.handlers.get(topic, []):
            handler(topic, data)

    def payloads(self, topic: Optional[str] = None) -> List[Union[str, bytes]]:
        return [p for t, p, _, _ in self.published if topic is None or t == topic]


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def bare_engine():
    """Engine sin esquema: toda consulta falla (store no disponible)."""
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def log_store(engine) -> LogStore:
    return LogStore(engine)


@pytest.fixture
def status_store(engine, clock) -> StatusStore:
    return StatusStore(engine, clock=clock)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        mqtt_host="localhost",
        mqtt_port=1883,
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id="test",
        telemetry_topic="hydro/data",
        control_topic="hydro/control/chiller",
        status_topic="hydro/control",
        connect_timeout_seconds=1.0,
        publish_timeout_seconds=1.0,
        command_settle_seconds=0.0,
        ingest_num_workers=0,
        ingest_queue_size=10,
        log_level="DEBUG",
    )


@pytest.fixture
def coordinator(settings, engine, transport, clock):
    coord = build_coordinator(
        settings=settings,
        engine=engine,
        transport=transport,
        clock=clock,
        sleep=lambda seconds: transport.events.append(f"sleep:{seconds}"),
    )
    coord.init_storage()
    return coord


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
