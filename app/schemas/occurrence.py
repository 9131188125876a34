"""
Occurrence API schemas.
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.scheduling.enums import ActivityKind, OccurrenceStatus
from app.scheduling.types import WorkoutLinkage


class OccurrenceCreate(BaseModel):
    """Schema for a standalone (not template-generated) occurrence."""

    title: str = Field(..., min_length=1, max_length=255)
    start_at: datetime.datetime
    end_at: Optional[datetime.datetime] = None
    kind: ActivityKind = ActivityKind.GENERIC
    workout_routine_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _check_linkage(self) -> "OccurrenceCreate":
        WorkoutLinkage(kind=self.kind, routine_id=self.workout_routine_id)
        return self


class OccurrenceUpdate(BaseModel):
    """Edits to the *actual* fields of an occurrence."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    start_at: Optional[datetime.datetime] = None
    end_at: Optional[datetime.datetime] = None


class WorkoutSessionLink(BaseModel):
    workout_session_id: Optional[uuid.UUID] = Field(None, description="None unlinks the session")


class OccurrenceResponse(BaseModel):
    """Schema for occurrences in API responses."""

    id: uuid.UUID
    title: str
    start_at: datetime.datetime
    end_at: Optional[datetime.datetime]
    template_id: Optional[uuid.UUID]
    day_key: Optional[str]
    generated_key: Optional[str]
    planned_title: Optional[str]
    planned_start_at: Optional[datetime.datetime]
    planned_end_at: Optional[datetime.datetime]
    kind: ActivityKind
    workout_routine_id: Optional[uuid.UUID]
    workout_session_id: Optional[uuid.UUID]
    status: OccurrenceStatus
    completed_at: Optional[datetime.datetime]

    class Config:
        from_attributes = True


class DayResponse(BaseModel):
    """All occurrences of one calendar day."""

    date: datetime.date
    day_key: str
    occurrences: list[OccurrenceResponse]
