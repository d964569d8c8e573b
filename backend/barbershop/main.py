# backend/barbershop/main.py
"""
FastAPI application for the barbershop booking engine.

Run with:
    uvicorn barbershop.main:app --reload
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .core.config import is_running_tests, settings
from .core.constants import BRAND_NAME
from .core.exceptions import DomainException
from .database import init_db
from .routes.v1 import availability as availability_v1
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import catalog as catalog_v1
from .routes.v1 import clients as clients_v1
from .routes.v1 import finance as finance_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}, timezone: {settings.business_timezone}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        init_db()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Slot allocation and booking lifecycle for a multi-branch barbershop",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Last-resort translation for domain errors raised outside a route's own handling."""
    http_exc = exc.to_http_exception()
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(catalog_v1.router)
api_v1.include_router(clients_v1.router, prefix="/clients")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(finance_v1.router, prefix="/finance")

app.include_router(api_v1)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "service": f"{BRAND_NAME} API", "version": __version__}


fastapi_app = app

__all__ = ["app", "fastapi_app"]
