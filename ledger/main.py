"""
FastAPI application entry point.

Run with: uvicorn ledger.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ledger import telemetry
from ledger._version import VERSION
from ledger.config import LOG_LEVEL
from ledger.database import init_db

# Import models to ensure they're registered with SQLAlchemy
from ledger.models import Holding, Transaction, User  # noqa: F401
from ledger.routers import admin_router, investments_router, portfolio_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry.
    Shutdown: (nothing to clean up for now)
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    await init_db()
    logger.info("Database initialized")

    if telemetry.setup_telemetry():
        # Attach OTLP handler to root logger for log export
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
        telemetry.setup_portfolio_metrics()
        logger.info("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        logger.info("Telemetry disabled")

    yield

    logger.info("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title="Investment Ledger API",
    description="Holdings, transaction ledger and portfolio analytics",
    version=VERSION,
    lifespan=lifespan,
)


# Register routers
# Admin routes stay at /admin (no API versioning for admin)
app.include_router(admin_router, prefix="/admin", tags=["admin"])
# Portfolio first so "portfolio" is never matched as a holding id
app.include_router(portfolio_router, prefix="/api/v1/investments", tags=["portfolio"])
app.include_router(investments_router, prefix="/api/v1/investments", tags=["investments"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/version")
async def get_version():
    """Get API version information."""
    return {
        "version": VERSION,
        "api_version": "v1",
    }
