"""
FastAPI application entry point.

Run with: uvicorn kadig.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from kadig._version import VERSION
from kadig.database import init_db

# Import models to ensure they're registered with SQLAlchemy
from kadig.models import (  # noqa: F401
    Investment,
    Movement,
    Notification,
    PluggyConnection,
    Portfolio,
    PortfolioHistory,
    Profile,
    User,
)
from kadig.routers import (
    admin_router,
    analytics_router,
    connections_router,
    investments_router,
    movements_router,
    notifications_router,
    portfolios_router,
    profile_router,
)
from kadig import telemetry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry.
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    await init_db()
    print("Database initialized")

    if telemetry.setup_telemetry():
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
        telemetry.setup_portfolio_metrics()
        print("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        print("Telemetry disabled")

    yield

    print("Application shutting down")


app = FastAPI(
    title="Kadig API",
    description="Personal investment tracking: portfolios, positions, Open Finance and analytics",
    version=VERSION,
    lifespan=lifespan,
)


# Admin routes stay at /admin (no API versioning for admin)
app.include_router(admin_router, prefix="/admin", tags=["admin"])
# User routes under /api/v1
app.include_router(profile_router, prefix="/api/v1", tags=["profile"])
app.include_router(portfolios_router, prefix="/api/v1", tags=["portfolios"])
app.include_router(investments_router, prefix="/api/v1", tags=["investments"])
app.include_router(movements_router, prefix="/api/v1", tags=["movements"])
app.include_router(analytics_router, prefix="/api/v1", tags=["analytics"])
app.include_router(connections_router, prefix="/api/v1", tags=["connections"])
app.include_router(notifications_router, prefix="/api/v1", tags=["notifications"])


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
        "min_client_version": "0.1.0",
    }
