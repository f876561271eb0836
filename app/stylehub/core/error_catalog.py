from dataclasses import dataclass

from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


def _define(code: str, message: str, status_code: int) -> ErrorDefinition:
    return ErrorDefinition(code=code, message=message, status_code=status_code)


class ErrorCatalog:
    # auth
    INVALID_TOKEN = _define("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    INVALID_CREDENTIALS = _define("INVALID_CREDENTIALS", "Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    UNAUTHENTICATED = _define("UNAUTHENTICATED", "A signed-in cashier is required", status.HTTP_401_UNAUTHORIZED)
    USER_INACTIVE = _define("USER_INACTIVE", "User is inactive", status.HTTP_403_FORBIDDEN)
    PERMISSION_DENIED = _define("PERMISSION_DENIED", "Permission denied", status.HTTP_403_FORBIDDEN)

    # store domain
    NOT_FOUND = _define("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    CONFLICT = _define("CONFLICT", "Resource already exists", status.HTTP_409_CONFLICT)
    INSUFFICIENT_STOCK = _define("INSUFFICIENT_STOCK", "Not enough units in stock", status.HTTP_409_CONFLICT)
    EMPTY_CART = _define("EMPTY_CART", "Cart is empty", status.HTTP_422_UNPROCESSABLE_ENTITY)
    VALIDATION_ERROR = _define("VALIDATION_ERROR", "Validation error", status.HTTP_422_UNPROCESSABLE_ENTITY)

    # persistence
    STORE_ERROR = _define("STORE_ERROR", "Sale could not be stored", status.HTTP_500_INTERNAL_SERVER_ERROR)
    DB_UNAVAILABLE = _define("DB_UNAVAILABLE", "Database unavailable", status.HTTP_503_SERVICE_UNAVAILABLE)
    LOCK_TIMEOUT = _define("LOCK_TIMEOUT", "Lock wait timeout", status.HTTP_409_CONFLICT)
    INTERNAL_ERROR = _define("INTERNAL_ERROR", "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    # checkout idempotency
    IDEMPOTENCY_KEY_REQUIRED = _define(
        "IDEMPOTENCY_KEY_REQUIRED", "Idempotency key required", status.HTTP_400_BAD_REQUEST
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = _define(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with a different sale",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = _define(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS", "This sale is still being submitted", status.HTTP_409_CONFLICT
    )
    IDEMPOTENCY_REPLAY = _define("IDEMPOTENCY_REPLAY", "Idempotent replay", status.HTTP_200_OK)


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code


class CheckoutStepError(AppError):
    """An error raised while a checkout step was running.

    ``step`` names the step (``create_sale``, ``update_stock``...) and is also
    merged into ``details`` so it reaches the API error envelope.
    """

    def __init__(self, error: ErrorDefinition, step: str, details: dict | None = None):
        self.step = step
        super().__init__(error, details={**(details or {}), "step": step})
