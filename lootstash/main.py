"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from lootstash.api.admin import router as admin_router
from lootstash.api.health import router as health_router
from lootstash.config import settings
from lootstash.core.logging import get_logger, setup_logging
from lootstash.db.database import engine as db_engine
from lootstash.db.models import Base
from lootstash.services.import_service import default_fetcher
from lootstash.services.storage import get_blob_store

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    logger.info("Initializing blob store...")
    store = get_blob_store()
    app.state.store = store
    app.state.fetcher = default_fetcher()
    logger.info(f"Blob store initialized: {store.name}")

    yield

    logger.info("Shutting down...")


app = FastAPI(title="LootStash Catalog", lifespan=lifespan)

app.include_router(health_router)
app.include_router(admin_router)
