"""
Template service.

CRUD for templates.  Editing a template here does not touch occurrences
already generated; propagating an edit is the job of
:class:`app.services.template_update_service.TemplateUpdateService`.
"""

import datetime
import uuid
from typing import Optional

from fastapi import HTTPException, status
from loguru import logger
from sqlmodel import Session

from app.core.config import settings
from app.db.repositories.day_override import DayOverrideRepository
from app.db.repositories.template import TemplateRepository
from app.models.template import Template
from app.scheduling.calendar import DayCalendar
from app.scheduling.types import WorkoutLinkage
from app.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate


class TemplateService:
    """Service for template business logic."""

    def __init__(self, session: Session, calendar: Optional[DayCalendar] = None):
        self.calendar = calendar or DayCalendar(timezone=settings.TIMEZONE)
        self.repository = TemplateRepository(session)
        self.overrides = DayOverrideRepository(session)

    def create(self, data: TemplateCreate) -> TemplateResponse:
        template = Template(title=data.title, is_enabled=data.is_enabled, start_minute=data.start_minute,
                            duration_minutes=data.duration_minutes, kind=data.kind,
                            workout_routine_id=data.workout_routine_id, )
        template.recurrence = data.recurrence
        template = self.repository.create(template)
        logger.info(f"Created template {template.id} ({template.title!r})")
        return self._to_response(template)

    def get(self, template_id: uuid.UUID) -> TemplateResponse:
        return self._to_response(self.get_or_404(template_id))

    def list_all(self) -> list[TemplateResponse]:
        return [self._to_response(t) for t in self.repository.get_all()]

    def update(self, template_id: uuid.UUID, data: TemplateUpdate) -> TemplateResponse:
        template = self.get_or_404(template_id)
        apply_changes(template, data)
        template = self.repository.update(template)
        return self._to_response(template)

    def schedule(self, template_id: uuid.UUID, start: Optional[datetime.date] = None,
                 end: Optional[datetime.date] = None) -> list[datetime.date]:
        """Days in ``[start, end]`` the template would materialize on.

        ``start`` defaults to today, ``end`` to ``settings.PLAN_DAYS_AHEAD`` days later.  Disabled templates
        and days with an override yield nothing.
        """
        template = self.get_or_404(template_id)
        start = start or self.calendar.today()
        end = end or start + datetime.timedelta(days=settings.PLAN_DAYS_AHEAD - 1)
        if end < start:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Range end is before its start", )
        if not template.is_enabled:
            return []

        overridden = {ov.day_key for ov in self.overrides.find_by_template(
            template_id, from_day_key=self.calendar.day_key(start),
            to_day_key=self.calendar.day_key(end + datetime.timedelta(days=1)), )}
        return [day for day in template.recurrence.occurrence_days(start, end, self.calendar)
                if self.calendar.day_key(day) not in overridden]

    def delete(self, template_id: uuid.UUID) -> None:
        # Generated occurrences stay; their template id simply stops matching.
        self.get_or_404(template_id)
        self.repository.delete(template_id)
        logger.info(f"Deleted template {template_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_or_404(self, template_id: uuid.UUID) -> Template:
        template = self.repository.get_by_id(template_id)
        if not template:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found", )
        return template

    @staticmethod
    def _to_response(template: Template) -> TemplateResponse:
        return TemplateResponse.model_validate(template)


def apply_changes(template: Template, data: TemplateUpdate) -> Template:
    """Copy the fields set in *data* onto *template*.

    Raises ``HTTPException(422)`` if the result breaks the workout linkage
    invariant.
    """
    if data.title is not None:
        template.title = data.title
    if data.is_enabled is not None:
        template.is_enabled = data.is_enabled
    if data.start_minute is not None:
        template.start_minute = data.start_minute
    if data.duration_minutes is not None:
        template.duration_minutes = data.duration_minutes
    if data.recurrence is not None:
        template.recurrence = data.recurrence

    kind = data.kind if data.kind is not None else template.kind
    routine_id = template.workout_routine_id
    if "workout_routine_id" in data.model_fields_set:
        routine_id = data.workout_routine_id
    try:
        template.linkage = WorkoutLinkage(kind=kind, routine_id=routine_id)
    except ValueError as e:
        # Switching away from workouts drops the routine implicitly
        if data.kind is not None and "workout_routine_id" not in data.model_fields_set:
            template.linkage = WorkoutLinkage.normalized(kind, routine_id)
        else:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e), )

    template.updated_at = datetime.datetime.utcnow()
    return template
