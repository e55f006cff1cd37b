"""
FastAPI application entry point for the Dialer Reports API.

This module configures logging and CORS, registers the ETL router, and starts
the ASGI server when run directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dialer_reports import __version__
from dialer_reports.api import api_router
from dialer_reports.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    The service holds no connections; startup only logs the active
    configuration.
    """
    # Startup
    logger.info("Dialer Reports API starting")
    if not settings.slack_webhook_url:
        logger.info("SLACK_WEBHOOK_URL not set; completion digests are disabled")

    yield

    # Shutdown
    logger.info("Dialer Reports API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Dialer Reports API",
    version=__version__,
    description=(
        "ETL and analytics backend for DialedIn call-center exports. "
        "Provides endpoints for day processing, file upload, alert "
        "evaluation and the report checklist."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Next.js dev server
        "http://127.0.0.1:3000",  # Alternative localhost
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Dialer Reports API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dialer_reports.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
