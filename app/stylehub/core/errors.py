import logging
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.stylehub.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.stylehub.core.metrics import metrics

logger = logging.getLogger("stylehub.errors")

# framework-raised HTTP errors (missing bearer token, unknown route...) reuse catalog codes
_HTTP_STATUS_ERRORS = {
    401: ErrorCatalog.UNAUTHENTICATED,
    403: ErrorCatalog.PERMISSION_DENIED,
    404: ErrorCatalog.NOT_FOUND,
    409: ErrorCatalog.CONFLICT,
}

_LOCK_TIMEOUT_MARKERS = (
    "lock timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
)


def is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_TIMEOUT_MARKERS)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (UUID, Exception)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def error_payload(code: str, message: str, details, trace_id: str) -> dict:
    return {"code": code, "message": message, "details": _json_safe(details), "trace_id": trace_id}


def error_response(code: str, message: str, details: object, trace_id: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_payload(code, message, details, trace_id))


def _respond(
    request: Request,
    status_code: int,
    payload: dict,
    exc: Exception,
    headers: dict | None = None,
) -> JSONResponse:
    request.state.error_code = payload["code"]
    request.state.error_class = exc.__class__.__name__
    # a failed checkout keeps its idempotency key bound to this error
    context = getattr(request.state, "idempotency", None)
    if context is not None:
        context.record_failure(status_code=status_code, response_body=payload)
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


def _catalog_response(request: Request, error: ErrorDefinition, details, exc: Exception) -> JSONResponse:
    payload = error_payload(error.code, error.message, details, _trace_id(request))
    return _respond(request, error.status_code, payload, exc)


def _validation_error_details(exc: RequestValidationError) -> dict:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(item) for item in loc if item not in {"body", "query", "path", "header"}) or None
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
                "input": error.get("input"),
                "ctx": error.get("ctx"),
            }
        )
    return {"errors": errors}


def _http_error_payload(request: Request, exc: HTTPException) -> dict:
    error = _HTTP_STATUS_ERRORS.get(exc.status_code)
    detail = exc.detail
    details = None
    if isinstance(detail, dict):
        message = str(detail.get("message", error.message if error else "HTTP error"))
        details = {key: value for key, value in detail.items() if key != "message"} or None
    else:
        message = str(detail) if detail is not None else "HTTP error"
    code = error.code if error is not None else f"HTTP_{exc.status_code}"
    return error_payload(code, message, details, _trace_id(request))


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _catalog_response(request, exc.error, exc.details, exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        payload = _http_error_payload(request, exc)
        return _respond(request, exc.status_code, payload, exc, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _catalog_response(request, ErrorCatalog.VALIDATION_ERROR, _validation_error_details(exc), exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if is_lock_timeout(exc):
            metrics.increment_lock_wait_timeout()
            logger.warning("lock wait timeout on %s %s", request.method, request.url.path)
            return _catalog_response(request, ErrorCatalog.LOCK_TIMEOUT, {"type": exc.__class__.__name__}, exc)
        logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        error = ErrorCatalog.STORE_ERROR if isinstance(exc, SQLAlchemyError) else ErrorCatalog.INTERNAL_ERROR
        return _catalog_response(request, error, {"type": exc.__class__.__name__}, exc)
