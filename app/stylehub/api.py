from fastapi import APIRouter

from app.stylehub.core.config import settings
from app.stylehub.routers.auth import router as auth_router
from app.stylehub.routers.customers import router as customers_router
from app.stylehub.routers.health import router as health_router
from app.stylehub.routers.installments import router as installments_router
from app.stylehub.routers.metrics import router as metrics_router
from app.stylehub.routers.pos import router as pos_router
from app.stylehub.routers.products import router as products_router
from app.stylehub.routers.sales import router as sales_router
from app.stylehub.routers.users import router as users_router
from app.stylehub.schemas.errors import AUTH_ERROR_RESPONSES

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router, prefix="/stylehub/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/stylehub", tags=["users"], responses=AUTH_ERROR_RESPONSES)
api_router.include_router(products_router, prefix="/stylehub", tags=["products"], responses=AUTH_ERROR_RESPONSES)
api_router.include_router(customers_router, prefix="/stylehub", tags=["customers"], responses=AUTH_ERROR_RESPONSES)
api_router.include_router(pos_router, prefix="/stylehub", tags=["pos"], responses=AUTH_ERROR_RESPONSES)
api_router.include_router(sales_router, prefix="/stylehub", tags=["sales"], responses=AUTH_ERROR_RESPONSES)
api_router.include_router(installments_router, prefix="/stylehub", tags=["installments"], responses=AUTH_ERROR_RESPONSES)
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, prefix="/stylehub")
