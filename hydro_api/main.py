from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException

from . import __version__
from .coordinator import get_coordinator
from .core.errors import PreconditionFailed, StoreUnavailable, TransportUnavailable
from .endpoints import chiller_router, health_router, logs_router, status_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    coordinator = get_coordinator()
    coordinator.start(ingest=True)
    try:
        yield
    finally:
        coordinator.stop()


app = FastAPI(title="Hydro Telemetry Coordinator", version=__version__, lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(health_router)
app.include_router(logs_router)
app.include_router(status_router)
app.include_router(chiller_router)
app.mount("/metrics", make_asgi_app())


def _error(status_code: int, message: str) -> JSONResponse:
    # Mismo envelope que espera el dashboard: {"success": false, "error": "..."}
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request body")


@app.exception_handler(PreconditionFailed)
async def precondition_failed_handler(request: Request, exc: PreconditionFailed):
    return _error(400, str(exc))


@app.exception_handler(TransportUnavailable)
async def transport_unavailable_handler(request: Request, exc: TransportUnavailable):
    logger.warning("[API] %s %s: %s", request.method, request.url.path, exc)
    return _error(503, f"MQTT broker not available: {exc}")


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("[API] %s %s: %s", request.method, request.url.path, exc)
    return _error(500, str(exc))
