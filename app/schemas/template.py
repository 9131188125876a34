"""
Template API schemas.

``workout_routine_id`` is only accepted together with ``kind = workout``.
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.scheduling.enums import ActivityKind
from app.scheduling.recurrence import RecurrenceRule
from app.scheduling.types import WorkoutLinkage

MINUTES_PER_DAY = 24 * 60


class TemplateCreate(BaseModel):
    """Schema for creating a template."""

    title: str = Field(..., min_length=1, max_length=255)
    is_enabled: bool = True
    start_minute: int = Field(..., ge=0, lt=MINUTES_PER_DAY, description="Minutes after local midnight")
    duration_minutes: int = Field(30, ge=0, le=MINUTES_PER_DAY, description="Default occurrence length")
    recurrence: RecurrenceRule
    kind: ActivityKind = ActivityKind.GENERIC
    workout_routine_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_linkage(self) -> "TemplateCreate":
        WorkoutLinkage(kind=self.kind, routine_id=self.workout_routine_id)
        return self


class TemplateUpdate(BaseModel):
    """Schema for template changes.  Omitted fields keep their value."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    is_enabled: Optional[bool] = None
    start_minute: Optional[int] = Field(None, ge=0, lt=MINUTES_PER_DAY)
    duration_minutes: Optional[int] = Field(None, ge=0, le=MINUTES_PER_DAY)
    recurrence: Optional[RecurrenceRule] = None
    kind: Optional[ActivityKind] = None
    workout_routine_id: Optional[uuid.UUID] = None


class TemplateResponse(BaseModel):
    """Schema for templates in API responses."""

    id: uuid.UUID
    title: str
    is_enabled: bool
    start_minute: int
    duration_minutes: int
    recurrence: RecurrenceRule
    kind: ActivityKind
    workout_routine_id: Optional[uuid.UUID]
    created_at: datetime.datetime
    updated_at: datetime.datetime

    class Config:
        from_attributes = True
