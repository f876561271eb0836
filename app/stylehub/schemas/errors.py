from pydantic import BaseModel, ConfigDict


class ErrorEnvelope(BaseModel):
    code: str
    message: str
    details: dict | None = None
    trace_id: str | None = None


class ValidationErrorItem(BaseModel):
    field: str | None = None
    message: str
    type: str
    loc: list[str | int] | None = None


class ValidationErrorEnvelope(ErrorEnvelope):
    details: dict[str, list[ValidationErrorItem]] | dict | None = None


class CheckoutErrorDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    step: str
    message: str | None = None
    product_id: str | None = None
    requested: int | None = None
    available: int | None = None


class CheckoutErrorEnvelope(ErrorEnvelope):
    details: CheckoutErrorDetails | dict | None = None


AUTH_ERROR_RESPONSES = {
    401: {"model": ErrorEnvelope, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorEnvelope, "description": "Inactive user or role below the required one"},
    422: {"model": ValidationErrorEnvelope, "description": "Validation error"},
}

CHECKOUT_ERROR_RESPONSES = {
    404: {"model": CheckoutErrorEnvelope, "description": "Customer or product vanished; details.step names the step"},
    409: {"model": CheckoutErrorEnvelope, "description": "Insufficient stock or idempotency key conflict"},
    500: {"model": CheckoutErrorEnvelope, "description": "Store failure; nothing was written"},
}
