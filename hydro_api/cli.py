"""CLI entry point: API + ingesta, solo ingesta, o inicialización de BD."""

from __future__ import annotations

import argparse
import logging
import signal
import threading

import uvicorn

from common.config import get_settings
from common.db import check_connection

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _run_ingest_only() -> None:
    """Subscriber standalone: ingesta MQTT → BD, sin API HTTP."""
    from .coordinator import get_coordinator

    coordinator = get_coordinator()
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    coordinator.start(ingest=True)
    logger.info("Telemetry ingestion running, Ctrl+C to stop")
    stop.wait()
    logger.info("Shutting down...")
    coordinator.stop()


def _init_db() -> None:
    from .coordinator import get_coordinator

    coordinator = get_coordinator()
    if not check_connection(coordinator.engine):
        raise SystemExit(1)
    coordinator.init_storage()
    logger.info("Schema ready and system_status initialized")


def main() -> None:
    settings = get_settings()
    _configure_logging(settings.log_level)

    p = argparse.ArgumentParser(description="Hydro telemetry coordinator")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="HTTP API + MQTT ingestion")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=3000)

    sub.add_parser("ingest", help="MQTT ingestion only")
    sub.add_parser("init-db", help="create tables and seed system_status")

    args = p.parse_args()

    if args.command == "serve":
        uvicorn.run("hydro_api.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    elif args.command == "ingest":
        _run_ingest_only()
    elif args.command == "init-db":
        _init_db()


if __name__ == "__main__":
    main()
