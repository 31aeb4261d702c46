import logging
import time

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from sitegate.api.exception_handlers import storage_failed_response
from sitegate.auth.users import resolve_current_user
from sitegate.maintenance.gate import Deny, GateRequest, evaluate
from sitegate.observability.logging import log_event
from sitegate.settings.store import ConfigStore
from sitegate.storage.base import StorageFailedError

logger = logging.getLogger("sitegate.gate")

RETRY_AFTER_SECONDS = "3600"


def build_gate_request(request: Request) -> GateRequest:
    user = resolve_current_user(request)
    return GateRequest(
        privileged=user.authenticated,
        path=request.url.path,
        query_params=request.query_params,
        cookies=request.cookies,
    )


def install_maintenance_gate_middleware(app: FastAPI, store: ConfigStore, admin_prefix: str) -> None:
    @app.middleware("http")
    async def maintenance_gate_middleware(request: Request, call_next):  # type: ignore[override]
        start = time.perf_counter()
        try:
            config = await run_in_threadpool(store.load)
        except StorageFailedError:
            log_event(
                logger,
                {"event": "gate.config_unavailable", "request_id": getattr(request.state, "request_id", None)},
                level=logging.ERROR,
            )
            return storage_failed_response(request)
        decision = evaluate(build_gate_request(request), config, admin_prefix=admin_prefix)

        request.state.maintenance = config.enabled
        request.state.gate_ms = int(round((time.perf_counter() - start) * 1000))

        if isinstance(decision, Deny):
            request.state.gate_decision = "deny"
            return HTMLResponse(
                content=decision.body,
                status_code=503,
                headers={"Retry-After": RETRY_AFTER_SECONDS, "Cache-Control": "no-store"},
            )

        request.state.gate_decision = "admit"
        response = await call_next(request)
        cookie = decision.bypass_cookie
        if cookie is not None:
            response.set_cookie(
                key=cookie.name,
                value=cookie.value,
                max_age=cookie.max_age,
                expires=cookie.expires_at,
                path=cookie.path,
                httponly=True,
                samesite="lax",
            )
        return response
