"""
Occurrence database model.

An occurrence is one concrete, day-anchored activity.  It carries two sets
of fields:

- *actual* (``title``, ``start_at``, ``end_at``): what the user sees and
  edits,
- *planned* (``planned_*``): the last values pushed by the template.  A
  field whose actual value differs from its planned value has *diverged*
  and is preserved by template updates.

``generated_key`` (``"{template_id}|{day_key}"``) is the idempotency key for
template-generated rows.  Rows with ``template_id = NULL`` are standalone.

All datetimes are naive local wall-clock values in plain ``DateTime`` columns.
"""

import datetime
import uuid
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.scheduling.enums import ActivityKind, OccurrenceStatus
from app.scheduling.types import WorkoutLinkage


class Occurrence(SQLModel, table=True):
    """A materialized activity instance."""

    __tablename__ = "occurrences"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Actual
    title: str = Field(nullable=False, max_length=255)
    start_at: datetime.datetime = Field(nullable=False, index=True, sa_type=DateTime)
    end_at: Optional[datetime.datetime] = Field(default=None, sa_type=DateTime)

    # Template linkage
    template_id: Optional[uuid.UUID] = Field(default=None, index=True)
    day_key: Optional[str] = Field(default=None, max_length=10, index=True)
    generated_key: Optional[str] = Field(default=None, max_length=64, unique=True, index=True)

    # Planned (last template push)
    planned_title: Optional[str] = Field(default=None, max_length=255)
    planned_start_at: Optional[datetime.datetime] = Field(default=None, sa_type=DateTime)
    planned_end_at: Optional[datetime.datetime] = Field(default=None, sa_type=DateTime)

    # Workout linkage
    kind: ActivityKind = Field(default=ActivityKind.GENERIC, nullable=False)
    workout_routine_id: Optional[uuid.UUID] = Field(default=None)
    workout_session_id: Optional[uuid.UUID] = Field(default=None)

    # State
    status: OccurrenceStatus = Field(default=OccurrenceStatus.PLANNED, nullable=False)
    completed_at: Optional[datetime.datetime] = Field(default=None, sa_type=DateTime)

    # Timestamps
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, sa_type=DateTime)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, sa_type=DateTime)

    @property
    def linkage(self) -> WorkoutLinkage:
        return WorkoutLinkage.normalized(self.kind, self.workout_routine_id)

    @linkage.setter
    def linkage(self, value: WorkoutLinkage) -> None:
        self.kind = value.kind
        self.workout_routine_id = value.routine_id
