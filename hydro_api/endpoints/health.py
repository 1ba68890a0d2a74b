"""Health, readiness and stats endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from common.db import check_connection
from ..coordinator import Coordinator, get_coordinator

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health():
    """Liveness probe — always returns ok if process is running."""
    return {"success": True, "message": "API Server is running"}


@router.get("/ready")
def ready(coordinator: Coordinator = Depends(get_coordinator)):
    """Readiness probe — checks DB connectivity."""
    if not check_connection(coordinator.engine):
        raise HTTPException(status_code=503, detail="Database not reachable")
    return {"success": True, "mqtt_connected": coordinator.transport.is_connected()}


@router.get("/metrics")
def metrics(coordinator: Coordinator = Depends(get_coordinator)):
    """Receiver + async processor stats (Prometheus counters van por /metrics)."""
    return {"success": True, "data": coordinator.receiver.health_check()}
