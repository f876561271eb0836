import logging
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.stylehub.core.db_timing import DbUsage
from app.stylehub.middleware.observability import build_request_log_payload, request_log_level
from app.stylehub.middleware.trace import resolve_trace_id


def _request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": [],
        "route": SimpleNamespace(path="/stylehub/installments/{installment_id}/pay"),
    }
    return Request(scope)


def test_build_request_log_payload():
    request = _request("/stylehub/installments/abc/pay")
    request.state.trace_id = "trace-1"
    request.state.user_id = "user-1"
    request.state.error_code = None
    response = Response(status_code=200)

    payload = build_request_log_payload(
        request=request,
        response=response,
        latency_ms=12.3456,
        db_usage=DbUsage(time_ms=4.5678, queries=3),
    )

    assert payload["trace_id"] == "trace-1"
    assert payload["user_id"] == "user-1"
    assert payload["route"] == "/stylehub/installments/{installment_id}/pay"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 200
    assert payload["latency_ms"] == 12.35
    assert payload["db_time_ms"] == 4.57
    assert payload["db_queries"] == 3


def test_payload_without_response_reports_server_error():
    request = _request("/stylehub/pos/sales")

    payload = build_request_log_payload(request=request, response=None, latency_ms=1.0, db_usage=None)

    assert payload["status_code"] == 500
    assert payload["db_time_ms"] is None
    assert payload["user_id"] is None
    assert payload["trace_id"] == ""


def test_slow_and_failed_requests_log_louder():
    request = _request("/stylehub/pos/sales")
    fast = build_request_log_payload(request=request, response=Response(status_code=201), latency_ms=3, db_usage=None)
    slow = build_request_log_payload(
        request=request, response=Response(status_code=201), latency_ms=5000, db_usage=None
    )
    failed = build_request_log_payload(request=request, response=None, latency_ms=3, db_usage=None)

    assert request_log_level(fast) == logging.INFO
    assert request_log_level(slow) == logging.WARNING
    assert request_log_level(failed) == logging.ERROR


def test_trace_id_header_is_reused_only_when_storable():
    assert resolve_trace_id("pos-terminal-3.abc") == "pos-terminal-3.abc"
    assert len(resolve_trace_id(None)) == 32
    assert resolve_trace_id("x" * 65) != "x" * 65
    assert resolve_trace_id("bad id; drop") != "bad id; drop"
