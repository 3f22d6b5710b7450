from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.session import get_db

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    return {"status": "ok", "trace_id": getattr(request.state, "trace_id", "")}


@router.get("/ready")
def ready(request: Request, db=Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise AppError(ErrorCatalog.DB_UNAVAILABLE, details={"error": str(exc)}) from exc
    return {
        "status": "ready",
        "database": db.get_bind().dialect.name,
        "trace_id": getattr(request.state, "trace_id", ""),
    }
