"""
Petrol Station Back Office API - Main Application.

FastAPI application with CORS enabled for frontend communication.
Back-office errors (domain.errors.StationError) are converted to JSON error
responses by a single exception handler.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.dependencies import get_calibration
from config import get_settings
from domain.errors import StationError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A malformed calibration table is fatal at startup.
    calibration = get_calibration()
    logger.info(
        "Calibration table loaded",
        extra={"points": len(calibration.depths), "max_depth_mm": str(calibration.max_depth)},
    )
    yield


# Create FastAPI application
app = FastAPI(
    title="Petrol Station Back Office API",
    description="REST API for tank stock, nozzle readings, dip charts and sales reporting",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StationError)
async def station_error_handler(request: Request, exc: StationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"Request failed: {exc}",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": str(exc), "status_code": exc.status_code},
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status, version and configured store backend.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "petrol-station-backoffice-api",
        "store_backend": settings.store_backend,
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Petrol Station Back Office API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import (  # noqa: E402
    accounts,
    dipcharts,
    dispensers,
    invoices,
    products,
    readings,
    reports,
    settings as company_settings,
    tanks,
    vouchers,
)

app.include_router(readings.router, prefix="/api/v1", tags=["Readings"])
app.include_router(dipcharts.router, prefix="/api/v1", tags=["Dip Charts"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(tanks.router, prefix="/api/v1", tags=["Tanks"])
app.include_router(products.router, prefix="/api/v1", tags=["Products"])
app.include_router(dispensers.router, prefix="/api/v1", tags=["Dispensers"])
app.include_router(accounts.router, prefix="/api/v1", tags=["Accounts"])
app.include_router(invoices.router, prefix="/api/v1", tags=["Invoices"])
app.include_router(vouchers.router, prefix="/api/v1", tags=["Vouchers"])
app.include_router(company_settings.router, prefix="/api/v1", tags=["Settings"])
