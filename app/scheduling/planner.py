"""
Template update planner.

Turns a template edit (a :class:`TemplateDraft`) into a declarative
:class:`UpdatePlan` for one of three scopes:

- ``this_instance``: the apply day only,
- ``this_and_future``: the apply day plus linked occurrences starting in
  ``[apply_day, apply_day + days_ahead)``,
- ``all_instances``: every occurrence ever linked to the template.

The planner only reads.  It is safe to call for previews before the user
confirms anything.

An occurrence belongs to the day of its ``day_key``, not of its (possibly
user-moved) start; only legacy rows without a day key fall back to the start.

Merge rule
----------
Planned fields always follow the template.  An actual field (title, start,
end) follows the template only when it still equals its *old* planned
value, i.e. the user never diverged it; ``overwrite_actual`` forces it.
A missing old planned value counts as equal to the actual one, so legacy
rows without planned fields update on first touch.

Workout linkage is re-synced from the template only for occurrences that
have no workout session, and only when ``overwrite_actual`` is set or the
occurrence is still planned.  Otherwise the occurrence's own linkage is
kept (normalized).
"""

from __future__ import annotations

import datetime
import uuid
from typing import Optional

from loguru import logger
from sqlmodel import Session

from app.db.repositories.day_override import DayOverrideRepository
from app.db.repositories.occurrence import OccurrenceRepository
from app.models.occurrence import Occurrence
from app.scheduling.calendar import DEFAULT_CALENDAR, DayCalendar, generated_key
from app.scheduling.enums import OccurrenceStatus
from app.scheduling.ports import OccurrenceStore, OverrideStore
from app.scheduling.types import (GENERIC_LINKAGE, OccurrenceSnapshot, PlannedCreate, PlannedUpdate,
                                  TemplateDraft, UpdatePlan, UpdatePreview, UpdateScope, WorkoutLinkage, )

DEFAULT_DAYS_AHEAD = 120
PREVIEW_SAMPLE_SIZE = 3


class UpdatePlanner:
    """Computes update plans; never mutates the stores."""

    def __init__(self, occurrences: OccurrenceStore, overrides: OverrideStore,
                 calendar: DayCalendar = DEFAULT_CALENDAR, ):
        self.occurrences = occurrences
        self.overrides = overrides
        self.calendar = calendar

    @classmethod
    def from_session(cls, session: Session, calendar: DayCalendar = DEFAULT_CALENDAR) -> UpdatePlanner:
        return cls(OccurrenceRepository(session), DayOverrideRepository(session), calendar)

    def make_plan(self, template_id: uuid.UUID, draft: TemplateDraft, scope: UpdateScope,
                  apply_day: datetime.date | datetime.datetime, days_ahead: int = DEFAULT_DAYS_AHEAD,
                  detach_if_no_longer_matches: bool = True, overwrite_actual: bool = False,
                  include_apply_day_create: bool = True, resurrect_overrides_on_apply_day: bool = True,
                  force_apply_day: bool = True, ) -> UpdatePlan:
        """Build the plan for applying *draft* to the occurrences of *template_id*.

        Args:
            template_id: Template being edited.
            draft: Proposed template state (not yet saved).
            scope: Which occurrences are considered.
            apply_day: Day the edit was made from.
            days_ahead: Window length for ``this_and_future``.
            detach_if_no_longer_matches: Unlink occurrences on days the
                template no longer applies to (otherwise leave them alone).
            overwrite_actual: Force actual fields to the template values,
                ignoring user divergence.
            include_apply_day_create: Create the apply-day occurrence when
                it does not exist.
            resurrect_overrides_on_apply_day: Delete an apply-day override
                and re-apply the template to that day.
            force_apply_day: Create the apply-day occurrence even if the
                draft is disabled or does not match that day.

        Returns:
            :class:`UpdatePlan`; empty when there is nothing to do.
        """
        apply_day_start = self.calendar.start_of_day(apply_day)
        apply_day_key = self.calendar.day_key(apply_day_start)
        apply_key = generated_key(template_id, apply_day_key)

        override_keys = self._fetch_override_keys(template_id, scope, apply_day_start, days_ahead, apply_key)
        candidates = self._fetch_candidates(template_id, scope, apply_day_start, days_ahead)

        apply_day_overridden = bool(self.overrides.find_by_key(apply_key))
        apply_day_existing = next(iter(self.occurrences.find_by_generated_key(apply_key)), None)

        updates: list[PlannedUpdate] = []
        creates: list[PlannedCreate] = []
        before_snapshots: dict[uuid.UUID, OccurrenceSnapshot] = {}
        created_generated_keys: list[str] = []
        override_keys_to_delete: list[str] = []

        resurrect = resurrect_overrides_on_apply_day and apply_day_overridden
        if resurrect:
            override_keys_to_delete.append(apply_key)

        # --- Apply day (located by generated key) ---
        if not apply_day_overridden or resurrect:
            if apply_day_existing is not None:
                before = OccurrenceSnapshot.of(apply_day_existing)
                after = self._merge(apply_day_existing, template_id, draft, apply_day_start, apply_day_key, apply_key,
                                    overwrite_actual)
                if before != after:
                    before_snapshots[apply_day_existing.id] = before
                    updates.append(PlannedUpdate(occurrence_id=apply_day_existing.id, after=after))
            elif include_apply_day_create and self._should_apply_on_day(draft, apply_day_start, force_apply_day):
                creates.append(self._planned_create(template_id, draft, apply_day_start, apply_day_key, apply_key))
                created_generated_keys.append(apply_key)

        # --- Linked occurrences (located by template id) ---
        for occurrence in candidates:
            if occurrence.status == OccurrenceStatus.SKIPPED:
                continue

            instance_day_start = self._instance_day(occurrence)
            instance_day_key = self.calendar.day_key(instance_day_start)
            if instance_day_key == apply_day_key:
                continue

            key = generated_key(template_id, instance_day_key)
            if key in override_keys:
                continue

            after = self._after_for_linked(occurrence, template_id, draft, instance_day_start, instance_day_key, key,
                                           detach_if_no_longer_matches, overwrite_actual)
            if after is None:
                continue

            before = OccurrenceSnapshot.of(occurrence)
            if before != after:
                before_snapshots[occurrence.id] = before
                updates.append(PlannedUpdate(occurrence_id=occurrence.id, after=after))

        updates.sort(key=lambda u: (u.after.start_at, str(u.occurrence_id)))

        sample = [u.after.start_at for u in updates[:PREVIEW_SAMPLE_SIZE]]
        sample += [c.start_at for c in creates[:PREVIEW_SAMPLE_SIZE]]
        preview = UpdatePreview(affected_count=len(updates) + len(creates),
                                sample_start_dates=sample[:PREVIEW_SAMPLE_SIZE], )

        logger.debug(f"Plan for template {template_id} ({scope.value}, {apply_day_key}): "
                     f"{len(updates)} update(s), {len(creates)} create(s), "
                     f"{len(override_keys_to_delete)} override(s) to delete")

        return UpdatePlan(template_id=template_id, scope=scope, apply_day=apply_day_start, updates=updates,
                          creates=creates, override_keys_to_delete=override_keys_to_delete,
                          before_snapshots=before_snapshots, created_generated_keys=created_generated_keys,
                          preview=preview, )

    # ------------------------------------------------------------------
    # Fetches
    # ------------------------------------------------------------------

    def _instance_day(self, occurrence: Occurrence) -> datetime.datetime:
        """Day an occurrence belongs to: its stored day key, else (legacy rows) the day of its start."""
        if occurrence.day_key:
            try:
                return self.calendar.start_of_day(datetime.date.fromisoformat(occurrence.day_key))
            except ValueError:
                logger.warning(f"Occurrence {occurrence.id} has a malformed day key {occurrence.day_key!r}")
        return self.calendar.start_of_day(occurrence.start_at)

    def _window_end(self, apply_day_start: datetime.datetime, days_ahead: int) -> datetime.datetime:
        return apply_day_start + datetime.timedelta(days=days_ahead)

    def _fetch_candidates(self, template_id: uuid.UUID, scope: UpdateScope, apply_day_start: datetime.datetime,
                          days_ahead: int, ) -> list[Occurrence]:
        if scope == UpdateScope.THIS_INSTANCE:
            return []
        if scope == UpdateScope.THIS_AND_FUTURE:
            return self.occurrences.find_by_template(template_id, start=apply_day_start,
                                                     end=self._window_end(apply_day_start, days_ahead), )
        return self.occurrences.find_by_template(template_id)

    def _fetch_override_keys(self, template_id: uuid.UUID, scope: UpdateScope, apply_day_start: datetime.datetime,
                             days_ahead: int, apply_key: str, ) -> set[str]:
        if scope == UpdateScope.THIS_INSTANCE:
            return {ov.key for ov in self.overrides.find_by_key(apply_key)}
        if scope == UpdateScope.THIS_AND_FUTURE:
            from_key = self.calendar.day_key(apply_day_start)
            to_key = self.calendar.day_key(self._window_end(apply_day_start, days_ahead))
            overrides = self.overrides.find_by_template(template_id, from_day_key=from_key, to_day_key=to_key)
        else:
            overrides = self.overrides.find_by_template(template_id)
        return {ov.key for ov in overrides}

    # ------------------------------------------------------------------
    # After-state computation
    # ------------------------------------------------------------------

    def _should_apply_on_day(self, draft: TemplateDraft, day_start: datetime.datetime, force: bool) -> bool:
        if force:
            return True
        return draft.is_enabled and draft.recurrence.matches(day_start, self.calendar)

    def _template_times(self, draft: TemplateDraft,
                        day_start: datetime.datetime) -> tuple[datetime.datetime, datetime.datetime]:
        start = self.calendar.at_minute(day_start, draft.start_minute)
        return start, self.calendar.at_minute(start, draft.duration_minutes)

    def _planned_create(self, template_id: uuid.UUID, draft: TemplateDraft, day_start: datetime.datetime,
                        day_key: str, key: str, ) -> PlannedCreate:
        start, end = self._template_times(draft, day_start)
        linkage = draft.linkage
        return PlannedCreate(generated_key=key, day_key=day_key, title=draft.title, start_at=start, end_at=end,
                             kind=linkage.kind, workout_routine_id=linkage.routine_id, template_id=template_id,
                             planned_title=draft.title, planned_start_at=start, planned_end_at=end, )

    def _after_for_linked(self, occurrence: Occurrence, template_id: uuid.UUID, draft: TemplateDraft,
                          day_start: datetime.datetime, day_key: str, key: str, detach: bool,
                          overwrite_actual: bool, ) -> Optional[OccurrenceSnapshot]:
        """After-state of a linked occurrence; ``None`` leaves it untouched."""
        still_applies = draft.is_enabled and draft.recurrence.matches(day_start, self.calendar)
        if still_applies:
            return self._merge(occurrence, template_id, draft, day_start, day_key, key, overwrite_actual)
        if not detach:
            return None
        return self._detached(occurrence, day_key)

    def _merge(self, occurrence: Occurrence, template_id: uuid.UUID, draft: TemplateDraft,
               day_start: datetime.datetime, day_key: str, key: str, overwrite_actual: bool, ) -> OccurrenceSnapshot:
        new_start, new_end = self._template_times(draft, day_start)

        old_planned_title = occurrence.planned_title if occurrence.planned_title is not None else occurrence.title
        old_planned_start = (occurrence.planned_start_at if occurrence.planned_start_at is not None
                             else occurrence.start_at)
        old_planned_end = occurrence.planned_end_at if occurrence.planned_end_at is not None else occurrence.end_at

        title, start_at, end_at = occurrence.title, occurrence.start_at, occurrence.end_at
        if overwrite_actual:
            title, start_at, end_at = draft.title, new_start, new_end
        else:
            if title == old_planned_title:
                title = draft.title
            if start_at == old_planned_start:
                start_at = new_start
            if end_at == old_planned_end:
                end_at = new_end

        return OccurrenceSnapshot(title=title, start_at=start_at, end_at=end_at, template_id=template_id,
                                  day_key=day_key, generated_key=key, planned_title=draft.title,
                                  planned_start_at=new_start, planned_end_at=new_end,
                                  **self._linkage_fields(self._synced_linkage(occurrence, draft, overwrite_actual)),
                                  workout_session_id=occurrence.workout_session_id, status=occurrence.status, )

    @staticmethod
    def _synced_linkage(occurrence: Occurrence, draft: TemplateDraft, overwrite_actual: bool) -> WorkoutLinkage:
        # A started workout session pins the linkage, even when overwriting.
        if occurrence.workout_session_id is not None:
            return occurrence.linkage
        if overwrite_actual or occurrence.status == OccurrenceStatus.PLANNED:
            return draft.linkage
        return occurrence.linkage

    def _detached(self, occurrence: Occurrence, day_key: str) -> OccurrenceSnapshot:
        linkage = occurrence.linkage
        if occurrence.status == OccurrenceStatus.PLANNED and occurrence.workout_session_id is None:
            linkage = GENERIC_LINKAGE

        return OccurrenceSnapshot(title=occurrence.title, start_at=occurrence.start_at, end_at=occurrence.end_at,
                                  template_id=None, day_key=day_key, generated_key=None, planned_title=None,
                                  planned_start_at=None, planned_end_at=None, **self._linkage_fields(linkage),
                                  workout_session_id=occurrence.workout_session_id, status=occurrence.status, )

    @staticmethod
    def _linkage_fields(linkage: WorkoutLinkage) -> dict:
        return {"kind": linkage.kind, "workout_routine_id": linkage.routine_id}
