from fastapi import APIRouter

from app.stockflow.core.config import settings
from app.stockflow.routers.bills import router as bills_router
from app.stockflow.routers.health import router as health_router
from app.stockflow.routers.metrics import router as metrics_router
from app.stockflow.routers.products import router as products_router
from app.stockflow.routers.reports import router as reports_router
from app.stockflow.routers.stores import router as stores_router
from app.stockflow.schemas.errors import ErrorEnvelope, InsufficientStockEnvelope, ValidationErrorEnvelope

TENANT_ERROR_RESPONSES = {
    403: {"model": ErrorEnvelope, "description": "Tenant scope missing or operation not allowed"},
    404: {"model": ErrorEnvelope, "description": "Resource not found in tenant"},
    422: {"model": ValidationErrorEnvelope, "description": "Validation error"},
    503: {"model": ErrorEnvelope, "description": "Ledger unavailable"},
}

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(stores_router, tags=["stores"], responses=TENANT_ERROR_RESPONSES)
api_router.include_router(products_router, tags=["products"], responses=TENANT_ERROR_RESPONSES)
api_router.include_router(
    bills_router,
    tags=["bills"],
    responses={**TENANT_ERROR_RESPONSES, 409: {"model": InsufficientStockEnvelope, "description": "Insufficient stock"}},
)
api_router.include_router(reports_router, tags=["reports"], responses=TENANT_ERROR_RESPONSES)
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
