"""
Template update applier.

Executes an :class:`UpdatePlan` as one unit:

    idle → applying → committed | rolled_back

1. updates, in plan order (a missing occurrence aborts the run),
2. creates, re-checking the generated key right before inserting,
3. override deletions, last, so a failure never leaves an override deleted
   without its occurrence,
4. commit.

On any failure the plan is rolled back before the original error is
re-raised: every before-snapshot is re-applied and every occurrence created
by the run is deleted.  Overrides are never re-created; they are only
deleted in step 3, after everything else succeeded.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Iterable

from loguru import logger
from sqlmodel import Session

from app.db.repositories.day_override import DayOverrideRepository
from app.db.repositories.occurrence import OccurrenceRepository
from app.models.occurrence import Occurrence
from app.scheduling.enums import OccurrenceStatus
from app.scheduling.errors import MissingOccurrenceError, RollbackError
from app.scheduling.ports import OccurrenceStore, OverrideStore
from app.scheduling.types import PlannedCreate, UpdatePlan


class ApplyState(str, Enum):
    IDLE = "idle"
    APPLYING = "applying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class UpdateApplier:
    """Applies update plans transactionally, with snapshot rollback."""

    def __init__(self, occurrences: OccurrenceStore, overrides: OverrideStore):
        self.occurrences = occurrences
        self.overrides = overrides
        self.state = ApplyState.IDLE

    @classmethod
    def from_session(cls, session: Session) -> UpdateApplier:
        return cls(OccurrenceRepository(session), DayOverrideRepository(session))

    def apply(self, plan: UpdatePlan) -> None:
        """Apply *plan*, or leave the store as it was and re-raise."""
        self.state = ApplyState.APPLYING
        inserted_keys: list[str] = []

        try:
            for update in plan.updates:
                occurrence = self.occurrences.get_by_id(update.occurrence_id)
                if occurrence is None:
                    logger.warning(f"Occurrence {update.occurrence_id} vanished while applying plan for template "
                                   f"{plan.template_id}")
                    raise MissingOccurrenceError(update.occurrence_id)
                update.after.apply_to(occurrence)
                occurrence.updated_at = datetime.datetime.utcnow()
                self.occurrences.add(occurrence)

            for create in plan.creates:
                if self.occurrences.find_by_generated_key(create.generated_key):
                    logger.debug(f"Skipping create for {create.generated_key}: already exists")
                    continue
                self.occurrences.add(self._build_occurrence(create))
                inserted_keys.append(create.generated_key)

            for key in plan.override_keys_to_delete:
                self.overrides.delete_by_key(key)

            self.occurrences.commit()
        except Exception as error:
            logger.error(f"Applying plan for template {plan.template_id} failed: {error!r}; rolling back")
            try:
                self._rollback(plan, inserted_keys)
            except RollbackError as rollback_error:
                logger.error(f"{rollback_error} while recovering from {error!r}")
            raise

        self.state = ApplyState.COMMITTED
        logger.info(f"Applied plan for template {plan.template_id} ({plan.scope.value}): "
                    f"{len(plan.updates)} update(s), {len(plan.creates)} create(s), "
                    f"{len(plan.override_keys_to_delete)} override(s) deleted")

    def rollback(self, plan: UpdatePlan) -> None:
        """Restore every pre-image of *plan* and delete the rows it creates.

        Each step is attempted independently; raises :class:`RollbackError`
        listing the steps that failed.
        """
        self._rollback(plan, plan.created_generated_keys)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _rollback(self, plan: UpdatePlan, created_keys: Iterable[str]) -> None:
        failures: list[tuple[str, BaseException]] = []

        try:
            self.occurrences.rollback()
        except Exception as e:
            failures.append(("discard pending changes", e))

        for occurrence_id, snapshot in plan.before_snapshots.items():
            try:
                occurrence = self.occurrences.get_by_id(occurrence_id)
                if occurrence is not None:
                    snapshot.apply_to(occurrence)
                    self.occurrences.add(occurrence)
            except Exception as e:
                failures.append((f"restore {occurrence_id}", e))

        for key in created_keys:
            try:
                for occurrence in self.occurrences.find_by_generated_key(key):
                    self.occurrences.delete(occurrence)
            except Exception as e:
                failures.append((f"delete {key}", e))

        try:
            self.occurrences.commit()
        except Exception as e:
            failures.append(("commit", e))

        self.state = ApplyState.ROLLED_BACK

        if failures:
            for step, exc in failures:
                logger.error(f"Rollback step '{step}' failed: {exc!r}")
            raise RollbackError(failures)

        logger.info(f"Rolled back plan for template {plan.template_id}")

    @staticmethod
    def _build_occurrence(create: PlannedCreate) -> Occurrence:
        occurrence = Occurrence(title=create.title, start_at=create.start_at, end_at=create.end_at,
                                template_id=create.template_id, day_key=create.day_key,
                                generated_key=create.generated_key, planned_title=create.planned_title,
                                planned_start_at=create.planned_start_at, planned_end_at=create.planned_end_at,
                                status=OccurrenceStatus.PLANNED, )
        occurrence.linkage = create.linkage
        return occurrence
