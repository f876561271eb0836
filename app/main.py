from fastapi import FastAPI

from app.stylehub.api import api_router
from app.stylehub.core.config import settings
from app.stylehub.core.errors import setup_exception_handlers
from app.stylehub.core.logging import configure_logging
from app.stylehub.middleware.observability import ObservabilityMiddleware
from app.stylehub.middleware.trace import TraceIdMiddleware

OPENAPI_TAGS = [
    {"name": "pos", "description": "Cart operations and sale checkout."},
    {"name": "installments", "description": "Installment listing, summary and payment."},
    {"name": "sales", "description": "Completed sales with items and schedules."},
    {"name": "products", "description": "Catalog and stock."},
    {"name": "customers", "description": "Customer registry keyed by CPF/CNPJ."},
    {"name": "auth", "description": "Token issue."},
    {"name": "users", "description": "Profiles and staff accounts."},
]


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description="Point of sale back end for a clothing store.",
        openapi_tags=OPENAPI_TAGS,
    )
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
