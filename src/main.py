"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.catalog import router as catalog_router
from src.api.health import router as health_router
from src.config import settings
from src.core.catalog.errors import CatalogError
from src.core.event_bus import CatalogEvent, EventBus
from src.core.event_types import EventTypes
from src.core.logging import get_logger, setup_logging
from src.services.dataset_service import DatasetService

setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
logger = get_logger(__name__)


def _log_ingestion(event: CatalogEvent) -> None:
    if event.event_type == EventTypes.INGESTION_SKIPPED:
        logger.info("Dataset %s ready (already populated).", event.data["dataset"])
    else:
        logger.info(
            "Dataset %s ready (%d rows ingested).",
            event.data["dataset"],
            event.data["inserted"],
        )


def register_event_logging(bus: EventBus) -> None:
    """Log dataset readiness for every switch, startup or POST /catalog/dataset."""
    bus.subscribe(EventTypes.INGESTION_COMPLETED, _log_ingestion)
    bus.subscribe(EventTypes.INGESTION_SKIPPED, _log_ingestion)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    dataset_service = DatasetService()
    register_event_logging(dataset_service.event_bus)
    app.state.dataset_service = dataset_service

    if settings.DATASET_PATH:
        logger.info("Opening dataset %s...", settings.DATASET_PATH)
        try:
            dataset_service.switch(settings.DATASET_PATH)
        except CatalogError as e:
            # 서버는 뜨고, /catalog/dataset 으로 다시 지정할 수 있다
            logger.error("Failed to open dataset on startup: %s", e)
    else:
        logger.info("DATASET_PATH not set; waiting for POST /catalog/dataset")

    yield

    logger.info("Shutting down...")
    dataset_service.close()


app = FastAPI(title="Item Knowledge Base", lifespan=lifespan)

app.include_router(health_router)
app.include_router(catalog_router)
