"""
Template update service.

Builds update plans from a stored template plus requested changes, and
applies them.  The template edit itself is staged in the same session as
the plan, so it is committed together with the occurrences or discarded
with them when the apply rolls back.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import settings
from app.db.repositories.template import TemplateRepository
from app.models.template import Template
from app.scheduling.applier import UpdateApplier
from app.scheduling.calendar import DayCalendar
from app.scheduling.errors import TemplateUpdateError
from app.scheduling.planner import UpdatePlanner
from app.scheduling.types import TemplateDraft, UpdatePlan, WorkoutLinkage
from app.schemas.template import TemplateUpdate
from app.schemas.template_update import TemplateUpdateRequest, UpdatePlanResponse
from app.services.template_service import apply_changes


class TemplateUpdateService:
    """Preview and apply template edits across generated occurrences."""

    def __init__(self, session: Session, calendar: Optional[DayCalendar] = None):
        self.calendar = calendar or DayCalendar(timezone=settings.TIMEZONE)
        self.session = session
        self.templates = TemplateRepository(session)
        self.planner = UpdatePlanner.from_session(session, self.calendar)
        self.applier = UpdateApplier.from_session(session)

    def preview(self, template_id: uuid.UUID, request: TemplateUpdateRequest) -> UpdatePlanResponse:
        plan, _ = self.make_plan(template_id, request)
        return UpdatePlanResponse.from_plan(plan)

    def apply(self, template_id: uuid.UUID, request: TemplateUpdateRequest) -> UpdatePlanResponse:
        plan, template = self.make_plan(template_id, request)
        if template is None:
            return UpdatePlanResponse.from_plan(plan)

        apply_changes(template, request.changes)
        self.session.add(template)

        try:
            self.applier.apply(plan)
        except (TemplateUpdateError, SQLAlchemyError) as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail=f"Template update could not be applied: {e}", ) from e

        return UpdatePlanResponse.from_plan(plan, applied=True)

    def make_plan(self, template_id: uuid.UUID,
                  request: TemplateUpdateRequest) -> tuple[UpdatePlan, Optional[Template]]:
        """Plan *request* against the stored template.

        A template that no longer exists yields an empty plan.
        """
        apply_day = self.calendar.start_of_day(request.apply_day or self.calendar.today())
        template = self.templates.get_by_id(template_id)
        if template is None:
            logger.info(f"Template {template_id} not found; nothing to plan")
            return UpdatePlan.empty(template_id, request.scope, apply_day), None

        draft = build_draft(template, request.changes)
        plan = self.planner.make_plan(template_id, draft, request.scope, apply_day,
                                      days_ahead=request.days_ahead or settings.PLAN_DAYS_AHEAD,
                                      detach_if_no_longer_matches=request.detach_if_no_longer_matches,
                                      overwrite_actual=request.overwrite_actual,
                                      include_apply_day_create=request.include_apply_day_create,
                                      resurrect_overrides_on_apply_day=request.resurrect_overrides_on_apply_day,
                                      force_apply_day=request.force_apply_day, )
        return plan, template


def build_draft(template: Template, changes: TemplateUpdate) -> TemplateDraft:
    """Draft of *template* with *changes* applied; the template is not touched."""
    values = {key: value for key, value in changes.model_dump(exclude_unset=True).items()
              if value is not None or key == "workout_routine_id"}
    merged = {**TemplateDraft.from_template(template).model_dump(), **values}

    try:
        if "kind" in values and "workout_routine_id" not in values:
            linkage = WorkoutLinkage.normalized(merged["kind"], merged["workout_routine_id"])
        else:
            linkage = WorkoutLinkage(kind=merged["kind"], routine_id=merged["workout_routine_id"])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e), )

    merged["kind"], merged["workout_routine_id"] = linkage.kind, linkage.routine_id
    return TemplateDraft(**merged)
