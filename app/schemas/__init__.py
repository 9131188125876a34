"""Pydantic schemas for request/response validation."""

from app.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from app.schemas.template_update import PlannedChangeResponse, TemplateUpdateRequest, UpdatePlanResponse
from app.schemas.occurrence import (
    DayResponse,
    OccurrenceCreate,
    OccurrenceResponse,
    OccurrenceUpdate,
    WorkoutSessionLink,
)

__all__ = [
    "TemplateCreate",
    "TemplateUpdate",
    "TemplateResponse",
    "TemplateUpdateRequest",
    "PlannedChangeResponse",
    "UpdatePlanResponse",
    "OccurrenceCreate",
    "OccurrenceUpdate",
    "OccurrenceResponse",
    "WorkoutSessionLink",
    "DayResponse",
]
