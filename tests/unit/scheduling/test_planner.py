"""Tests for the update planner.

The stores are in-memory fakes; occurrences are produced by the real
materializer so they look exactly like generated rows.
"""

import datetime
import uuid

import pytest

from app.models.occurrence import Occurrence
from app.scheduling.calendar import generated_key
from app.scheduling.enums import ActivityKind, OccurrenceStatus, OverrideAction
from app.scheduling.planner import UpdatePlanner
from app.scheduling.recurrence import RecurrenceKind, RecurrenceRule, Weekday
from app.scheduling.types import UpdateScope

D = datetime.date
DT = datetime.datetime

JAN_10 = D(2025, 1, 10)


@pytest.fixture
def planner(occurrence_store, override_store, calendar):
    return UpdatePlanner(occurrence_store, override_store, calendar)


@pytest.fixture
def morning(make_template):
    """Daily 07:00-07:30 "Morning"."""
    return make_template()


def _preload(materializer, *days: int) -> dict[int, Occurrence]:
    return {day: materializer.ensure_day_is_preloaded(D(2025, 1, day))[0] for day in days}


def _afters(plan) -> dict[str, object]:
    return {u.after.day_key: u.after for u in plan.updates}


# ======================================================================
# Reference scenarios
# ======================================================================


class TestJanuaryScenarios:
    def test_this_and_future_updates_every_materialized_day(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11, 12)
        occs[11].title = "Morning run"  # user rename
        draft = draft_of(morning, title="New", start_minute=8 * 60, duration_minutes=45)

        plan = planner.make_plan(morning.id, draft, UpdateScope.THIS_AND_FUTURE, JAN_10, days_ahead=10)

        assert plan.creates == []
        assert [u.occurrence_id for u in plan.updates] == [occs[10].id, occs[11].id, occs[12].id]
        for day, update in zip((10, 11, 12), plan.updates):
            assert update.after.planned_title == "New"
            assert update.after.planned_start_at == DT(2025, 1, day, 8, 0)
            assert update.after.planned_end_at == DT(2025, 1, day, 8, 45)
            assert update.after.start_at == DT(2025, 1, day, 8, 0)
        afters = _afters(plan)
        assert afters["2025-01-10"].title == "New"
        assert afters["2025-01-11"].title == "Morning run"
        assert afters["2025-01-12"].title == "New"

    def test_missing_apply_day_becomes_a_create(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 12)
        draft = draft_of(morning, title="New", start_minute=8 * 60, duration_minutes=45)

        plan = planner.make_plan(morning.id, draft, UpdateScope.THIS_AND_FUTURE, JAN_10, days_ahead=10)

        assert len(plan.creates) == 1
        create = plan.creates[0]
        assert create.generated_key == generated_key(morning.id, "2025-01-10")
        assert create.start_at == DT(2025, 1, 10, 8, 0)
        assert create.end_at == DT(2025, 1, 10, 8, 45)
        assert plan.created_generated_keys == [create.generated_key]
        assert [u.occurrence_id for u in plan.updates] == [occs[12].id]


# ======================================================================
# Merge rule
# ======================================================================


class TestMerge:
    def test_diverged_fields_are_preserved(self, planner, materializer, morning, draft_of):
        occ = _preload(materializer, 10)[10]
        occ.start_at = DT(2025, 1, 10, 7, 15)
        draft = draft_of(morning, title="New", start_minute=8 * 60, duration_minutes=45)

        after = planner.make_plan(morning.id, draft, UpdateScope.THIS_INSTANCE, JAN_10).updates[0].after

        assert after.title == "New"
        assert after.start_at == DT(2025, 1, 10, 7, 15)
        assert after.end_at == DT(2025, 1, 10, 8, 45)
        assert after.planned_start_at == DT(2025, 1, 10, 8, 0)

    def test_overwrite_actual_forces_template_values(self, planner, materializer, morning, draft_of):
        occ = _preload(materializer, 10)[10]
        occ.title = "Renamed"
        occ.start_at = DT(2025, 1, 10, 6, 0)
        draft = draft_of(morning, title="New", start_minute=8 * 60)

        after = planner.make_plan(morning.id, draft, UpdateScope.THIS_INSTANCE, JAN_10,
                                  overwrite_actual=True).updates[0].after

        assert (after.title, after.start_at, after.end_at) == ("New", DT(2025, 1, 10, 8, 0), DT(2025, 1, 10, 8, 30))

    def test_legacy_row_without_planned_fields_updates_on_first_touch(self, planner, occurrence_store, morning,
                                                                      draft_of):
        key = generated_key(morning.id, "2025-01-10")
        legacy = Occurrence(title="Whatever", start_at=DT(2025, 1, 10, 7, 0), end_at=DT(2025, 1, 10, 7, 30),
                            template_id=morning.id, day_key="2025-01-10", generated_key=key, )
        occurrence_store.add(legacy)

        after = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE,
                                  JAN_10).updates[0].after

        assert after.title == "New"
        assert after.planned_title == "New"

    def test_unchanged_template_yields_empty_plan(self, planner, materializer, morning, draft_of):
        _preload(materializer, 10, 11, 12)
        plan = planner.make_plan(morning.id, draft_of(morning), UpdateScope.ALL_INSTANCES, JAN_10)
        assert plan.is_empty
        assert plan.preview.affected_count == 0
        assert plan.before_snapshots == {}

    def test_before_snapshots_hold_the_current_state(self, planner, materializer, morning, draft_of):
        occ = _preload(materializer, 10)[10]
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE, JAN_10)
        assert plan.before_snapshots[occ.id].title == "Morning"
        assert occ.title == "Morning"


# ======================================================================
# Workout linkage
# ======================================================================


class TestWorkoutLinkage:
    @pytest.fixture
    def workout(self, make_template):
        return make_template(title="Legs", kind=ActivityKind.WORKOUT, routine_id=uuid.uuid4())

    def test_planned_occurrence_follows_new_routine(self, planner, materializer, workout, draft_of):
        _preload(materializer, 10)
        new_routine = uuid.uuid4()
        after = planner.make_plan(workout.id, draft_of(workout, workout_routine_id=new_routine),
                                  UpdateScope.THIS_INSTANCE, JAN_10).updates[0].after
        assert after.workout_routine_id == new_routine

    def test_started_session_pins_linkage_even_when_overwriting(self, planner, materializer, workout, draft_of):
        occ = _preload(materializer, 10)[10]
        session_id = uuid.uuid4()
        occ.workout_session_id = session_id

        plan = planner.make_plan(workout.id, draft_of(workout, title="Push", workout_routine_id=uuid.uuid4()),
                                 UpdateScope.THIS_INSTANCE, JAN_10, overwrite_actual=True)
        after = plan.updates[0].after

        assert after.title == "Push"
        assert after.kind == ActivityKind.WORKOUT
        assert after.workout_routine_id == workout.workout_routine_id
        assert after.workout_session_id == session_id

    def test_done_occurrence_keeps_linkage_without_overwrite(self, planner, materializer, workout, draft_of):
        occ = _preload(materializer, 10)[10]
        occ.status = OccurrenceStatus.DONE
        after = planner.make_plan(workout.id, draft_of(workout, workout_routine_id=uuid.uuid4()),
                                  UpdateScope.THIS_INSTANCE, JAN_10).updates[0].after
        assert after.workout_routine_id == workout.workout_routine_id
        assert after.status == OccurrenceStatus.DONE

    def test_switching_to_generic_drops_routine(self, planner, materializer, workout, draft_of):
        _preload(materializer, 10)
        after = planner.make_plan(workout.id, draft_of(workout, kind=ActivityKind.GENERIC, workout_routine_id=None),
                                  UpdateScope.THIS_INSTANCE, JAN_10).updates[0].after
        assert after.kind == ActivityKind.GENERIC
        assert after.workout_routine_id is None


# ======================================================================
# Scopes
# ======================================================================


class TestScopes:
    def test_this_instance_only_touches_apply_day(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE, JAN_10)
        assert [u.occurrence_id for u in plan.updates] == [occs[10].id]

    def test_this_and_future_ignores_the_past(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 5, 10, 11)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)
        assert occs[5].id not in {u.occurrence_id for u in plan.updates}
        assert len(plan.updates) == 2

    def test_this_and_future_window_is_half_open(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11, 12)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10,
                                 days_ahead=2)
        assert [u.occurrence_id for u in plan.updates] == [occs[10].id, occs[11].id]

    def test_all_instances_includes_the_past(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 5, 10, 30)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.ALL_INSTANCES, JAN_10,
                                 days_ahead=1)
        assert [u.occurrence_id for u in plan.updates] == [occs[5].id, occs[10].id, occs[30].id]

    def test_apply_day_is_planned_once(self, planner, materializer, morning, draft_of):
        _preload(materializer, 10)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.ALL_INSTANCES, JAN_10)
        assert len(plan.updates) == 1

    def test_other_templates_are_untouched(self, planner, materializer, morning, make_template, draft_of):
        other = make_template(title="Evening", start_minute=19 * 60)
        materializer.ensure_day_is_preloaded(D(2025, 1, 11))
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.ALL_INSTANCES, JAN_10,
                                 include_apply_day_create=False)
        assert all(u.after.template_id == morning.id for u in plan.updates)
        assert other.id not in {u.after.template_id for u in plan.updates}

    def test_skipped_occurrences_are_left_alone(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11)
        occs[11].status = OccurrenceStatus.SKIPPED
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)
        assert [u.occurrence_id for u in plan.updates] == [occs[10].id]


# ======================================================================
# Detachment
# ======================================================================


class TestDetachment:
    @pytest.fixture
    def mondays_only(self):
        return RecurrenceRule(kind=RecurrenceKind.WEEKLY, start_date=D(2025, 1, 1), weekdays={Weekday.MONDAY})

    def test_no_longer_matching_occurrences_are_detached(self, planner, materializer, morning, draft_of,
                                                         mondays_only):
        # Jan 11 (Sat) stops matching, Jan 13 (Mon) still matches
        occs = _preload(materializer, 10, 11, 13)
        occs[11].title = "Renamed"
        plan = planner.make_plan(morning.id, draft_of(morning, recurrence=mondays_only),
                                 UpdateScope.THIS_AND_FUTURE, JAN_10)

        afters = {u.occurrence_id: u.after for u in plan.updates}
        detached = afters[occs[11].id]
        assert detached.template_id is None
        assert detached.generated_key is None
        assert detached.planned_title is None
        assert detached.planned_start_at is None
        assert detached.day_key == "2025-01-11"
        assert (detached.title, detached.start_at) == ("Renamed", occs[11].start_at)
        # Unchanged fields on a still-matching day: nothing to update
        assert occs[13].id not in afters

    def test_detach_disabled_leaves_occurrences_linked(self, planner, materializer, morning, draft_of,
                                                       mondays_only):
        occs = _preload(materializer, 10, 11)
        plan = planner.make_plan(morning.id, draft_of(morning, recurrence=mondays_only),
                                 UpdateScope.THIS_AND_FUTURE, JAN_10, detach_if_no_longer_matches=False)
        assert occs[11].id not in {u.occurrence_id for u in plan.updates}

    def test_disabling_the_template_detaches_future_days(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11, 12)
        plan = planner.make_plan(morning.id, draft_of(morning, is_enabled=False), UpdateScope.THIS_AND_FUTURE,
                                 JAN_10)
        detached = {u.occurrence_id for u in plan.updates if u.after.template_id is None}
        assert detached == {occs[11].id, occs[12].id}

    def test_detached_planned_workout_becomes_generic(self, planner, materializer, make_template, draft_of,
                                                      mondays_only):
        workout = make_template(kind=ActivityKind.WORKOUT, routine_id=uuid.uuid4())
        occs = _preload(materializer, 10, 11)
        after = {u.occurrence_id: u.after for u in planner.make_plan(
            workout.id, draft_of(workout, recurrence=mondays_only), UpdateScope.THIS_AND_FUTURE, JAN_10).updates}
        assert after[occs[11].id].kind == ActivityKind.GENERIC
        assert after[occs[11].id].workout_routine_id is None


# ======================================================================
# Overrides & apply day
# ======================================================================


class TestOverrides:
    def test_overridden_days_are_not_updated(self, planner, materializer, morning, draft_of, skip_day):
        occs = _preload(materializer, 10, 11)
        skip_day(morning, D(2025, 1, 11))
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)
        assert [u.occurrence_id for u in plan.updates] == [occs[10].id]

    def test_apply_day_override_is_resurrected(self, planner, morning, draft_of, skip_day):
        skip_day(morning, JAN_10, OverrideAction.DELETED_TODAY)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE, JAN_10)

        key = generated_key(morning.id, "2025-01-10")
        assert plan.override_keys_to_delete == [key]
        assert [c.generated_key for c in plan.creates] == [key]

    def test_apply_day_override_is_kept_without_resurrection(self, planner, morning, draft_of, skip_day):
        skip_day(morning, JAN_10, OverrideAction.DELETED_TODAY)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE, JAN_10,
                                 resurrect_overrides_on_apply_day=False)
        assert plan.is_empty

    def test_no_create_when_disabled_by_flag(self, planner, morning, draft_of):
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_INSTANCE, JAN_10,
                                 include_apply_day_create=False)
        assert plan.creates == []

    def test_non_matching_apply_day_needs_force(self, planner, make_template, draft_of):
        one_off = make_template(rule=RecurrenceRule(kind=RecurrenceKind.NONE, start_date=D(2025, 1, 1)))
        unforced = planner.make_plan(one_off.id, draft_of(one_off), UpdateScope.THIS_INSTANCE, JAN_10,
                                     force_apply_day=False)
        forced = planner.make_plan(one_off.id, draft_of(one_off), UpdateScope.THIS_INSTANCE, JAN_10)
        assert unforced.creates == []
        assert len(forced.creates) == 1


# ======================================================================
# Ordering & preview
# ======================================================================


class TestPreview:
    def test_updates_sorted_by_new_start(self, planner, materializer, morning, draft_of):
        _preload(materializer, 12, 10, 11, 13)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)
        starts = [u.after.start_at for u in plan.updates]
        assert starts == sorted(starts)

    def test_preview_samples_at_most_three_dates(self, planner, materializer, morning, draft_of):
        _preload(materializer, 10, 11, 12, 13, 14)
        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)
        assert plan.preview.affected_count == 5
        assert plan.preview.sample_start_dates == [DT(2025, 1, 10, 7, 0), DT(2025, 1, 11, 7, 0),
                                                   DT(2025, 1, 12, 7, 0)]

    def test_preview_includes_creates(self, planner, morning, draft_of):
        plan = planner.make_plan(morning.id, draft_of(morning), UpdateScope.THIS_INSTANCE, JAN_10)
        assert plan.preview.affected_count == 1
        assert plan.preview.sample_start_dates == [DT(2025, 1, 10, 7, 0)]


# ======================================================================
# Occurrences moved to another day
# ======================================================================


class TestMovedOccurrences:
    def test_moved_row_keeps_its_own_day_and_key(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10, 11, 12)
        occs[11].start_at = DT(2025, 1, 12, 9, 0)
        occs[11].end_at = DT(2025, 1, 12, 9, 30)

        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)

        afters = {u.occurrence_id: u.after for u in plan.updates}
        moved = afters[occs[11].id]
        assert moved.day_key == "2025-01-11"
        assert moved.generated_key == generated_key(morning.id, "2025-01-11")
        assert moved.start_at == DT(2025, 1, 12, 9, 0)
        assert moved.planned_start_at == DT(2025, 1, 11, 7, 0)
        assert moved.title == "New"
        keys = [u.after.generated_key for u in plan.updates]
        assert len(keys) == len(set(keys))

    def test_apply_day_row_moved_forward_is_planned_once(self, planner, materializer, morning, draft_of):
        occs = _preload(materializer, 10)
        occs[10].start_at = DT(2025, 1, 11, 6, 0)

        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)

        assert [u.occurrence_id for u in plan.updates] == [occs[10].id]
        assert plan.updates[0].after.day_key == "2025-01-10"

    def test_override_on_original_day_still_applies(self, planner, materializer, morning, draft_of, skip_day):
        occs = _preload(materializer, 10, 11)
        occs[11].start_at = DT(2025, 1, 13, 7, 0)
        skip_day(morning, D(2025, 1, 11))

        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10)

        assert occs[11].id not in {u.occurrence_id for u in plan.updates}

    def test_legacy_row_without_day_key_uses_its_start(self, planner, occurrence_store, morning, draft_of):
        legacy = Occurrence(title="Morning", start_at=DT(2025, 1, 12, 7, 0), end_at=DT(2025, 1, 12, 7, 30),
                            template_id=morning.id, )
        occurrence_store.add(legacy)

        plan = planner.make_plan(morning.id, draft_of(morning, title="New"), UpdateScope.THIS_AND_FUTURE, JAN_10,
                                 include_apply_day_create=False)

        after = plan.updates[0].after
        assert after.day_key == "2025-01-12"
        assert after.generated_key == generated_key(morning.id, "2025-01-12")
