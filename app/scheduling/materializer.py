"""
Day materialization (preload).

``ensure_day_is_preloaded(day)`` guarantees that, for every enabled template
whose recurrence matches *day* and that has no override for that day,
exactly one occurrence with ``generated_key = "{template_id}|{day_key}"``
exists.  It is idempotent: existing generated keys are collected into a set
before anything is inserted, so a second call inserts nothing.

Everything is committed once, at the end of the batch.  Persistence errors
propagate; there is nothing to undo because only new rows are written and a
repeated call skips the ones that already exist.
"""

from __future__ import annotations

import datetime

from loguru import logger
from sqlmodel import Session

from app.db.repositories.day_override import DayOverrideRepository
from app.db.repositories.occurrence import OccurrenceRepository
from app.db.repositories.template import TemplateRepository
from app.models.occurrence import Occurrence
from app.models.template import Template
from app.scheduling.calendar import DEFAULT_CALENDAR, DayCalendar, generated_key
from app.scheduling.enums import OccurrenceStatus
from app.scheduling.ports import OccurrenceStore, OverrideStore, TemplateStore


class Materializer:
    """Creates missing template occurrences for a day."""

    def __init__(self, templates: TemplateStore, occurrences: OccurrenceStore, overrides: OverrideStore,
                 calendar: DayCalendar = DEFAULT_CALENDAR, ):
        self.templates = templates
        self.occurrences = occurrences
        self.overrides = overrides
        self.calendar = calendar

    @classmethod
    def from_session(cls, session: Session, calendar: DayCalendar = DEFAULT_CALENDAR) -> Materializer:
        return cls(TemplateRepository(session), OccurrenceRepository(session), DayOverrideRepository(session),
                   calendar, )

    def ensure_day_is_preloaded(self, day: datetime.date | datetime.datetime) -> list[Occurrence]:
        """Materialize *day*; return the occurrences inserted by this call."""
        day_start = self.calendar.start_of_day(day)
        day_key = self.calendar.day_key(day_start)

        templates = self.templates.get_enabled()
        overridden = {ov.key for ov in self.overrides.find_by_day_key(day_key)}
        existing = {occ.generated_key for occ in self.occurrences.find_by_day_key(day_key) if occ.generated_key}

        inserted: list[Occurrence] = []
        for template in templates:
            if not template.recurrence.matches(day_start, self.calendar):
                continue

            key = generated_key(template.id, day_key)
            if key in overridden or key in existing:
                continue

            occurrence = self._build_occurrence(template, day_start, day_key, key)
            self.occurrences.add(occurrence)
            existing.add(key)
            inserted.append(occurrence)

        if inserted:
            self.occurrences.commit()
            logger.info(f"Preloaded {len(inserted)} occurrence(s) for {day_key}")

        return inserted

    def ensure_range_is_preloaded(self, start: datetime.date, end: datetime.date) -> list[Occurrence]:
        """Preload every day of the inclusive range ``[start, end]``.

        Each day is its own commit boundary.
        """
        inserted: list[Occurrence] = []
        day = start
        while day <= end:
            inserted.extend(self.ensure_day_is_preloaded(day))
            day += datetime.timedelta(days=1)
        logger.debug(f"Range {start}..{end}: {len(inserted)} occurrence(s) inserted")
        return inserted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_occurrence(self, template: Template, day_start: datetime.datetime, day_key: str,
                          key: str, ) -> Occurrence:
        start = self.calendar.at_minute(day_start, template.start_minute)
        end = self.calendar.at_minute(start, template.duration_minutes)

        occurrence = Occurrence(title=template.title, start_at=start, end_at=end, template_id=template.id,
                                day_key=day_key, generated_key=key, planned_title=template.title,
                                planned_start_at=start, planned_end_at=end, status=OccurrenceStatus.PLANNED, )
        occurrence.linkage = template.linkage
        return occurrence
