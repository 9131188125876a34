"""
Occurrence service.

Day views (materializing templates on first view), direct edits of actual
fields, completion, skip / delete (which record a day override so the
template never regenerates that day) and workout session linkage.
"""

import datetime
import uuid
from typing import Optional

from fastapi import HTTPException, status
from loguru import logger
from sqlmodel import Session

from app.core.config import settings
from app.db.repositories.day_override import DayOverrideRepository
from app.db.repositories.occurrence import OccurrenceRepository
from app.db.repositories.template import TemplateRepository
from app.models.day_override import DayOverride
from app.models.occurrence import Occurrence
from app.scheduling.calendar import DayCalendar
from app.scheduling.enums import ActivityKind, OccurrenceStatus, OverrideAction
from app.scheduling.materializer import Materializer
from app.scheduling.types import WorkoutLinkage
from app.schemas.occurrence import (DayResponse, OccurrenceCreate, OccurrenceResponse, OccurrenceUpdate,
                                    WorkoutSessionLink, )


class OccurrenceService:
    """Service for occurrence business logic."""

    def __init__(self, session: Session, calendar: Optional[DayCalendar] = None):
        self.calendar = calendar or DayCalendar(timezone=settings.TIMEZONE)
        self.repository = OccurrenceRepository(session)
        self.overrides = DayOverrideRepository(session)
        self.templates = TemplateRepository(session)
        self.materializer = Materializer(self.templates, self.repository, self.overrides, self.calendar)

    # ------------------------------------------------------------------
    # Day views
    # ------------------------------------------------------------------

    def get_day(self, day: datetime.date) -> DayResponse:
        self.materializer.ensure_day_is_preloaded(day)
        return DayResponse(date=day, day_key=self.calendar.day_key(day), occurrences=self._occurrences_on(day))

    def preload_range(self, start: Optional[datetime.date] = None,
                      end: Optional[datetime.date] = None) -> list[OccurrenceResponse]:
        """Materialize every day of ``[start, end]``; ``start`` defaults to today, ``end`` to ``start``."""
        start = start or self.calendar.today()
        end = end or start
        if end < start:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Range end is before its start", )
        inserted = self.materializer.ensure_range_is_preloaded(start, end)
        return [self._to_response(o) for o in inserted]

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def create(self, data: OccurrenceCreate) -> OccurrenceResponse:
        occurrence = Occurrence(title=data.title, start_at=data.start_at, end_at=data.end_at,
                                day_key=self.calendar.day_key(data.start_at), status=OccurrenceStatus.PLANNED, )
        occurrence.linkage = WorkoutLinkage(kind=data.kind, routine_id=data.workout_routine_id)
        self._ensure_end_after_start(occurrence)
        self.repository.add(occurrence)
        return self._to_response(self.repository.update(occurrence))

    def update(self, occurrence_id: uuid.UUID, data: OccurrenceUpdate) -> OccurrenceResponse:
        occurrence = self._get_or_404(occurrence_id)

        if data.title is not None:
            occurrence.title = data.title
        if data.start_at is not None:
            occurrence.start_at = data.start_at
            # Generated rows keep the day they were generated for
            if occurrence.template_id is None:
                occurrence.day_key = self.calendar.day_key(data.start_at)
        if "end_at" in data.model_fields_set:
            occurrence.end_at = data.end_at

        self._ensure_end_after_start(occurrence)
        occurrence.updated_at = datetime.datetime.utcnow()
        return self._to_response(self.repository.update(occurrence))

    def mark_done(self, occurrence_id: uuid.UUID, done: bool = True) -> OccurrenceResponse:
        occurrence = self._get_or_404(occurrence_id)
        if done:
            occurrence.status = OccurrenceStatus.DONE
            occurrence.completed_at = datetime.datetime.utcnow()
        else:
            occurrence.status = OccurrenceStatus.PLANNED
            occurrence.completed_at = None
        occurrence.updated_at = datetime.datetime.utcnow()
        return self._to_response(self.repository.update(occurrence))

    def skip(self, occurrence_id: uuid.UUID) -> OccurrenceResponse:
        """Skip the occurrence; a template-linked one is never regenerated or updated for that day."""
        occurrence = self._get_or_404(occurrence_id)
        if occurrence.template_id is not None:
            self.overrides.add(self._override_for(occurrence, OverrideAction.SKIPPED_TODAY))
        occurrence.status = OccurrenceStatus.SKIPPED
        occurrence.updated_at = datetime.datetime.utcnow()
        return self._to_response(self.repository.update(occurrence))

    def delete(self, occurrence_id: uuid.UUID) -> None:
        occurrence = self._get_or_404(occurrence_id)
        if occurrence.template_id is not None:
            self.overrides.add(self._override_for(occurrence, OverrideAction.DELETED_TODAY))
        self.repository.remove(occurrence)
        logger.info(f"Deleted occurrence {occurrence_id}")

    def link_workout_session(self, occurrence_id: uuid.UUID, data: WorkoutSessionLink) -> OccurrenceResponse:
        """Record (or clear) the workout session started from this occurrence."""
        occurrence = self._get_or_404(occurrence_id)
        if data.workout_session_id is not None:
            occurrence.kind = ActivityKind.WORKOUT
        occurrence.workout_session_id = data.workout_session_id
        occurrence.updated_at = datetime.datetime.utcnow()
        return self._to_response(self.repository.update(occurrence))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _occurrences_on(self, day: datetime.date) -> list[OccurrenceResponse]:
        day_start = self.calendar.start_of_day(day)
        by_id = {o.id: o for o in self.repository.find_by_day_key(self.calendar.day_key(day))}
        for o in self.repository.find_in_range(day_start, day_start + datetime.timedelta(days=1)):
            by_id.setdefault(o.id, o)
        return [self._to_response(o) for o in sorted(by_id.values(), key=lambda o: (o.start_at, str(o.id)))]

    def _override_for(self, occurrence: Occurrence, action: OverrideAction) -> DayOverride:
        day_key = occurrence.day_key or self.calendar.day_key(occurrence.start_at)
        return DayOverride.for_day(occurrence.template_id, day_key, action)

    def _get_or_404(self, occurrence_id: uuid.UUID) -> Occurrence:
        occurrence = self.repository.get_by_id(occurrence_id)
        if not occurrence:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Occurrence not found", )
        return occurrence

    def _ensure_end_after_start(self, occurrence: Occurrence) -> None:
        if occurrence.end_at is not None and occurrence.end_at <= occurrence.start_at:
            duration = settings.DEFAULT_DURATION_MINUTES
            if occurrence.template_id is not None:
                template = self.templates.get_by_id(occurrence.template_id)
                if template is not None:
                    duration = template.duration_minutes
            occurrence.end_at = occurrence.start_at + datetime.timedelta(minutes=max(duration, 1))

    @staticmethod
    def _to_response(occurrence: Occurrence) -> OccurrenceResponse:
        return OccurrenceResponse.model_validate(occurrence)
