from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.stylehub.core.config import settings
from app.stylehub.core.db_timing import DbUsage, get_db_usage, start_db_timer, stop_db_timer
from app.stylehub.core.logging import log_json
from app.stylehub.core.metrics import metrics

logger = logging.getLogger("stylehub.request")


def build_request_log_payload(
    *,
    request: Request,
    response: Response | None,
    latency_ms: float,
    db_usage: DbUsage | None,
) -> dict:
    route = getattr(request.scope.get("route"), "path", None) or request.url.path
    state = request.state
    usage = db_usage or DbUsage()
    return {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "user_id": getattr(state, "user_id", None),
        "route": route,
        "method": request.method,
        # no response means the handler chain raised past every exception handler
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": round(latency_ms, 2),
        "db_time_ms": round(usage.time_ms, 2) if db_usage is not None else None,
        "db_queries": usage.queries if db_usage is not None else None,
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }


def request_log_level(payload: dict) -> int:
    if payload["status_code"] >= 500:
        return logging.ERROR
    if payload["latency_ms"] >= settings.SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """One structured log line and one metrics sample per request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        token = start_db_timer()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            payload = build_request_log_payload(
                request=request,
                response=response,
                latency_ms=latency_ms,
                db_usage=get_db_usage(),
            )
            stop_db_timer(token)
            log_json(logger, payload, level=request_log_level(payload))
            metrics.record_http_request(
                route=payload["route"],
                method=payload["method"],
                status_code=payload["status_code"],
                latency_ms=latency_ms,
            )
