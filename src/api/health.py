"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from src.api.catalog import get_dataset_service
from src.services.dataset_service import DatasetService

router = APIRouter()


@router.get("/health")
def health_check(
    service: DatasetService = Depends(get_dataset_service),
) -> dict[str, str]:
    """Return application and dataset store health status."""
    if not service.store.is_open:
        return {"status": "ok", "database": "not_open"}
    try:
        service.store.counts()
        return {"status": "ok", "database": "connected"}
    except SQLAlchemyError:
        return {"status": "error", "database": "disconnected"}
