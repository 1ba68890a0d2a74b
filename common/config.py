from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en la raíz del repo; las variables reales del entorno siempre ganan.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


@dataclass(frozen=True)
class Settings:
    database_url: str

    mqtt_host: str
    mqtt_port: int
    mqtt_username: Optional[str]
    mqtt_password: Optional[str]
    mqtt_client_id: str

    telemetry_topic: str
    control_topic: str
    status_topic: str

    connect_timeout_seconds: float
    publish_timeout_seconds: float
    command_settle_seconds: float

    ingest_num_workers: int
    ingest_queue_size: int

    log_level: str


def _database_url_from_parts() -> str:
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = int(os.getenv("DB_PORT", "5432"))
    db_user = os.getenv("DB_USER", "postgres")
    db_password = os.getenv("DB_PASSWORD", "")
    db_name = os.getenv("DB_NAME", "data_nethouse")

    # La contraseña puede traer caracteres especiales (@, /, :)
    credentials = quote_plus(db_user)
    if db_password:
        credentials += ":" + quote_plus(db_password)
    return f"postgresql+psycopg2://{credentials}@{db_host}:{db_port}/{db_name}"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("HYDRO_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL") or _database_url_from_parts()

    return Settings(
        database_url=database_url,
        mqtt_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "hydro-coordinator"),
        telemetry_topic=os.getenv("MQTT_TELEMETRY_TOPIC", "hydro/data"),
        control_topic=os.getenv("MQTT_CONTROL_TOPIC", "hydro/control/chiller"),
        status_topic=os.getenv("MQTT_STATUS_TOPIC", "hydro/control"),
        connect_timeout_seconds=float(os.getenv("MQTT_CONNECT_TIMEOUT_SECONDS", "10")),
        publish_timeout_seconds=float(os.getenv("MQTT_PUBLISH_TIMEOUT_SECONDS", "5")),
        command_settle_seconds=float(os.getenv("COMMAND_SETTLE_SECONDS", "0.5")),
        ingest_num_workers=int(os.getenv("INGEST_NUM_WORKERS", "4")),
        ingest_queue_size=int(os.getenv("INGEST_QUEUE_SIZE", "1000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
