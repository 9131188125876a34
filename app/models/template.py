"""
Template database model.

A template is a recurring definition from which concrete occurrences are
generated.  The recurrence rule is stored as JSON and exposed as a
:class:`RecurrenceRule` through the ``recurrence`` property.
"""

import datetime
import uuid
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from app.scheduling.enums import ActivityKind
from app.scheduling.recurrence import RecurrenceRule
from app.scheduling.types import WorkoutLinkage


class Template(SQLModel, table=True):
    """A recurring activity definition.

    ``start_minute`` is the offset from local midnight, ``duration_minutes``
    the default length of every generated occurrence.
    """

    __tablename__ = "templates"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(nullable=False, max_length=255)
    is_enabled: bool = Field(default=True, nullable=False)

    start_minute: int = Field(default=0, nullable=False)
    duration_minutes: int = Field(default=30, nullable=False)

    recurrence_data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False), )

    kind: ActivityKind = Field(default=ActivityKind.GENERIC, nullable=False)
    workout_routine_id: Optional[uuid.UUID] = Field(default=None)

    # Timestamps
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, sa_type=DateTime)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, sa_type=DateTime)

    @property
    def recurrence(self) -> RecurrenceRule:
        fallback = (self.created_at or datetime.datetime.utcnow()).date()
        return RecurrenceRule.decode(self.recurrence_data, fallback_start=fallback)

    @recurrence.setter
    def recurrence(self, rule: RecurrenceRule) -> None:
        self.recurrence_data = rule.encode()

    @property
    def linkage(self) -> WorkoutLinkage:
        return WorkoutLinkage.normalized(self.kind, self.workout_routine_id)

    @linkage.setter
    def linkage(self, value: WorkoutLinkage) -> None:
        self.kind = value.kind
        self.workout_routine_id = value.routine_id
