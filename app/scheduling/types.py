"""
Value types shared by the planner and the applier.

Everything here is a plain immutable value: snapshots are keyed by
occurrence id inside a plan and rollback is "re-apply the recorded
snapshot".
"""

from __future__ import annotations

import datetime
import uuid
from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.scheduling.enums import ActivityKind, OccurrenceStatus
from app.scheduling.recurrence import RecurrenceRule

if TYPE_CHECKING:
    from app.models.occurrence import Occurrence
    from app.models.template import Template


class UpdateScope(str, Enum):
    THIS_INSTANCE = "this_instance"
    THIS_AND_FUTURE = "this_and_future"
    ALL_INSTANCES = "all_instances"


# ======================================================================
# Workout linkage
# ======================================================================


class WorkoutLinkage(BaseModel):
    """Kind + routine pair.  A routine is only allowed on workouts."""

    model_config = ConfigDict(frozen=True)

    kind: ActivityKind = ActivityKind.GENERIC
    routine_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _routine_only_for_workouts(self) -> WorkoutLinkage:
        if self.kind != ActivityKind.WORKOUT and self.routine_id is not None:
            raise ValueError("workout_routine_id is only allowed when kind is 'workout'")
        return self

    @classmethod
    def normalized(cls, kind: ActivityKind, routine_id: Optional[uuid.UUID]) -> WorkoutLinkage:
        """Build a valid linkage, dropping the routine of non-workouts."""
        return cls(kind=kind, routine_id=routine_id if kind == ActivityKind.WORKOUT else None)


GENERIC_LINKAGE = WorkoutLinkage()


# ======================================================================
# Snapshots
# ======================================================================


class OccurrenceSnapshot(BaseModel):
    """Every occurrence field the planner may change, as one value."""

    model_config = ConfigDict(frozen=True)

    title: str
    start_at: datetime.datetime
    end_at: Optional[datetime.datetime] = None

    template_id: Optional[uuid.UUID] = None
    day_key: Optional[str] = None
    generated_key: Optional[str] = None

    planned_title: Optional[str] = None
    planned_start_at: Optional[datetime.datetime] = None
    planned_end_at: Optional[datetime.datetime] = None

    kind: ActivityKind = ActivityKind.GENERIC
    workout_routine_id: Optional[uuid.UUID] = None
    workout_session_id: Optional[uuid.UUID] = None
    status: OccurrenceStatus = OccurrenceStatus.PLANNED

    @model_validator(mode="after")
    def _routine_only_for_workouts(self) -> OccurrenceSnapshot:
        WorkoutLinkage(kind=self.kind, routine_id=self.workout_routine_id)
        return self

    @property
    def linkage(self) -> WorkoutLinkage:
        return WorkoutLinkage(kind=self.kind, routine_id=self.workout_routine_id)

    @classmethod
    def of(cls, occurrence: Occurrence) -> OccurrenceSnapshot:
        """Capture *occurrence*; an invalid stored linkage is normalized."""
        linkage = WorkoutLinkage.normalized(occurrence.kind, occurrence.workout_routine_id)
        return cls(title=occurrence.title, start_at=occurrence.start_at, end_at=occurrence.end_at,
                   template_id=occurrence.template_id, day_key=occurrence.day_key,
                   generated_key=occurrence.generated_key, planned_title=occurrence.planned_title,
                   planned_start_at=occurrence.planned_start_at, planned_end_at=occurrence.planned_end_at,
                   kind=linkage.kind, workout_routine_id=linkage.routine_id,
                   workout_session_id=occurrence.workout_session_id, status=occurrence.status, )

    def apply_to(self, occurrence: Occurrence) -> None:
        """Overwrite every snapshot field of *occurrence*."""
        occurrence.title = self.title
        occurrence.start_at = self.start_at
        occurrence.end_at = self.end_at
        occurrence.template_id = self.template_id
        occurrence.day_key = self.day_key
        occurrence.generated_key = self.generated_key
        occurrence.planned_title = self.planned_title
        occurrence.planned_start_at = self.planned_start_at
        occurrence.planned_end_at = self.planned_end_at
        occurrence.status = self.status
        occurrence.linkage = self.linkage


# ======================================================================
# Draft
# ======================================================================


class TemplateDraft(BaseModel):
    """Proposed template state, used to plan before anything is saved."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    title: str
    is_enabled: bool = True
    start_minute: int = Field(ge=0, le=24 * 60 - 1)
    duration_minutes: int = Field(ge=0)
    recurrence: RecurrenceRule
    kind: ActivityKind = ActivityKind.GENERIC
    workout_routine_id: Optional[uuid.UUID] = None

    @property
    def linkage(self) -> WorkoutLinkage:
        return WorkoutLinkage.normalized(self.kind, self.workout_routine_id)

    @classmethod
    def from_template(cls, template: Template) -> TemplateDraft:
        return cls(id=template.id, title=template.title, is_enabled=template.is_enabled,
                   start_minute=template.start_minute, duration_minutes=template.duration_minutes,
                   recurrence=template.recurrence, kind=template.kind,
                   workout_routine_id=template.workout_routine_id, )


# ======================================================================
# Plan
# ======================================================================


class PlannedUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    occurrence_id: uuid.UUID
    after: OccurrenceSnapshot


class PlannedCreate(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_key: str
    day_key: str
    title: str
    start_at: datetime.datetime
    end_at: Optional[datetime.datetime]
    kind: ActivityKind
    workout_routine_id: Optional[uuid.UUID]

    template_id: uuid.UUID

    planned_title: str
    planned_start_at: datetime.datetime
    planned_end_at: Optional[datetime.datetime]

    @property
    def linkage(self) -> WorkoutLinkage:
        return WorkoutLinkage.normalized(self.kind, self.workout_routine_id)


class UpdatePreview(BaseModel):
    """What a confirmation dialog shows before a plan is applied."""

    model_config = ConfigDict(frozen=True)

    affected_count: int
    sample_start_dates: list[datetime.datetime] = Field(default_factory=list, max_length=3)


class UpdatePlan(BaseModel):
    """Declarative diff produced by the planner and executed by the applier."""

    template_id: uuid.UUID
    scope: UpdateScope
    apply_day: datetime.datetime

    # Existing occurrences to mutate, in application order
    updates: list[PlannedUpdate] = Field(default_factory=list)
    # New occurrences (only ever the apply day)
    creates: list[PlannedCreate] = Field(default_factory=list)
    # Executed last
    override_keys_to_delete: list[str] = Field(default_factory=list)

    # Rollback data
    before_snapshots: dict[uuid.UUID, OccurrenceSnapshot] = Field(default_factory=dict)
    created_generated_keys: list[str] = Field(default_factory=list)

    preview: UpdatePreview

    @property
    def affected_count(self) -> int:
        return len(self.updates) + len(self.creates)

    @property
    def is_empty(self) -> bool:
        return self.affected_count == 0 and not self.override_keys_to_delete

    @classmethod
    def empty(cls, template_id: uuid.UUID, scope: UpdateScope, apply_day: datetime.datetime) -> UpdatePlan:
        return cls(template_id=template_id, scope=scope, apply_day=apply_day,
                   preview=UpdatePreview(affected_count=0), )
