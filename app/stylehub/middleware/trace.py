import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

TRACE_HEADER = "X-Trace-ID"
# audit_events.trace_id is a String(64)
_VALID_TRACE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_trace_id(raw: str | None) -> str:
    """Caller supplied id when it is safe to store, otherwise a fresh one."""
    if raw and _VALID_TRACE_ID.match(raw):
        return raw
    return uuid.uuid4().hex


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = resolve_trace_id(request.headers.get(TRACE_HEADER))
        request.state.trace_id = trace_id
        response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response
