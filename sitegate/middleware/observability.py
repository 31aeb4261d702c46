import logging
import re
import time
from uuid import uuid4

from fastapi import FastAPI, Request

from sitegate.observability.logging import log_event

logger = logging.getLogger("sitegate.observability")

SAFE_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,64}$")
REQUEST_ID_HEADER = "X-Request-Id"

OPTIONAL_KEYS = [
    "maintenance",
    "gate_decision",
    "gate_ms",
    "error_code",
]


def _resolve_request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    return incoming if SAFE_REQUEST_ID_PATTERN.fullmatch(incoming) else str(uuid4())


def install_observability_middleware(app: FastAPI) -> None:
    """Tag each request with an id, echo it back, and log one event per request."""

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):  # type: ignore[override]
        start = time.perf_counter()
        request_id = _resolve_request_id(request)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            latency_ms = int(round((time.perf_counter() - start) * 1000))
            failed_event = {
                "event": "request.failed",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": 500,
                "latency_ms": latency_ms,
                "error_code": getattr(request.state, "error_code", "INTERNAL_ERROR"),
            }
            log_event(logger, failed_event, level=logging.ERROR)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        latency_ms = int(round((time.perf_counter() - start) * 1000))
        completed_event = {
            "event": "request.completed",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_ms": latency_ms,
        }
        for key in OPTIONAL_KEYS:
            value = getattr(request.state, key, None)
            if value is not None:
                completed_event[key] = value

        log_event(logger, completed_event)
        return response
