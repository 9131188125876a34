"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import days, occurrences, templates

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    templates.router, prefix="/templates", tags=["Templates"]
)
api_router.include_router(
    days.router, prefix="/days", tags=["Days"]
)
api_router.include_router(
    occurrences.router, prefix="/occurrences", tags=["Occurrences"]
)
