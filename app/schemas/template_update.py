"""
Template update (plan / apply) API schemas.
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, Field

from app.scheduling.types import UpdatePlan, UpdateScope
from app.schemas.template import TemplateUpdate


class TemplateUpdateRequest(BaseModel):
    """A template edit plus how far it should propagate."""

    changes: TemplateUpdate = Field(default_factory=TemplateUpdate)
    scope: UpdateScope = UpdateScope.THIS_AND_FUTURE
    apply_day: Optional[datetime.date] = Field(None, description="Day the edit is made from, default today")
    days_ahead: Optional[int] = Field(None, ge=1, le=3660, description="Window for 'this_and_future'")

    detach_if_no_longer_matches: bool = True
    overwrite_actual: bool = Field(False, description="Overwrite user edits on affected occurrences")
    include_apply_day_create: bool = True
    resurrect_overrides_on_apply_day: bool = True
    force_apply_day: bool = True


class PlannedChangeResponse(BaseModel):
    """One occurrence touched by a plan."""

    occurrence_id: Optional[uuid.UUID] = Field(None, description="None for occurrences to be created")
    generated_key: Optional[str]
    title: str
    start_at: datetime.datetime
    end_at: Optional[datetime.datetime]
    detached: bool = False


class UpdatePlanResponse(BaseModel):
    """Plan preview, shown before (or returned after) applying."""

    template_id: uuid.UUID
    scope: UpdateScope
    apply_day: datetime.datetime
    affected_count: int
    sample_start_dates: list[datetime.datetime]
    updates: list[PlannedChangeResponse]
    creates: list[PlannedChangeResponse]
    override_keys_to_delete: list[str]
    applied: bool = False

    @classmethod
    def from_plan(cls, plan: UpdatePlan, applied: bool = False) -> "UpdatePlanResponse":
        updates = [PlannedChangeResponse(occurrence_id=u.occurrence_id, generated_key=u.after.generated_key,
                                         title=u.after.title, start_at=u.after.start_at, end_at=u.after.end_at,
                                         detached=u.after.template_id is None, ) for u in plan.updates]
        creates = [PlannedChangeResponse(generated_key=c.generated_key, title=c.title, start_at=c.start_at,
                                         end_at=c.end_at, ) for c in plan.creates]
        return cls(template_id=plan.template_id, scope=plan.scope, apply_day=plan.apply_day,
                   affected_count=plan.preview.affected_count,
                   sample_start_dates=plan.preview.sample_start_dates, updates=updates, creates=creates,
                   override_keys_to_delete=plan.override_keys_to_delete, applied=applied, )
