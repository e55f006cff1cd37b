"""
Dialer Reports API package initialization.

This package contains FastAPI router modules for the DialedIn reporting backend:
- etl: Day processing, file upload, alert evaluation, thresholds and checklist
"""

from fastapi import APIRouter

# Import router modules
from dialer_reports.api.etl import router as etl_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(etl_router, prefix="/etl", tags=["etl"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "etl_router",
]
