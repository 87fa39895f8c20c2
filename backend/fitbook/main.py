# backend/fitbook/main.py
"""
fitbook API application.

Mounts the versioned routers, the request correlation and metrics
middleware, and creates tables on startup for development databases.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from .core.constants import BRAND_NAME
from .core.logging_config import configure_logging
from .database import Base, engine
from .middleware.prometheus_middleware import PrometheusMiddleware
from .middleware.request_id import RequestIdMiddleware
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import classes as classes_v1
from .routes.v1 import messages as messages_v1
from .routes.v1 import prometheus as prometheus_v1

# Import models so their tables register on Base.metadata
from . import models  # noqa: F401

configure_logging(settings)
logger = logging.getLogger(__name__)

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Fitness class booking, recurring schedules and trainer messaging"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    if settings.is_sqlite:
        Base.metadata.create_all(bind=engine)
        logger.info("SQLite schema ensured")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")
    engine.dispose()


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Reverse order of execution: request ids are bound before metrics are taken
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestIdMiddleware)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(classes_v1.router, prefix="/classes")
api_v1.include_router(messages_v1.router, prefix="/messages")

app.include_router(api_v1)
app.include_router(prometheus_v1.router)


@app.get("/health")
def health_check() -> Dict[str, str]:
    return {"status": "healthy", "service": f"{BRAND_NAME}-api", "version": API_VERSION}
