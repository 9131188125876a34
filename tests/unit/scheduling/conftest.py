"""In-memory stores for exercising the scheduling core without a database."""

import datetime
import uuid
from typing import Optional

import pytest

from app.models.day_override import DayOverride
from app.models.occurrence import Occurrence
from app.models.template import Template
from app.scheduling.calendar import DayCalendar
from app.scheduling.enums import ActivityKind, OverrideAction
from app.scheduling.materializer import Materializer
from app.scheduling.recurrence import RecurrenceKind, RecurrenceRule
from app.scheduling.types import TemplateDraft


class FakeTemplateStore:
    def __init__(self):
        self.rows: dict[uuid.UUID, Template] = {}

    def get_by_id(self, template_id: uuid.UUID) -> Optional[Template]:
        return self.rows.get(template_id)

    def get_enabled(self) -> list[Template]:
        enabled = [t for t in self.rows.values() if t.is_enabled]
        return sorted(enabled, key=lambda t: (t.start_minute, t.title))


class FakeOccurrenceStore:
    """Dict-backed store; ``failing_commits`` makes the next N commits raise."""

    def __init__(self):
        self.rows: dict[uuid.UUID, Occurrence] = {}
        self.commits = 0
        self.failing_commits = 0

    def get_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        return self.rows.get(occurrence_id)

    def find_by_generated_key(self, key: str) -> list[Occurrence]:
        return [o for o in self.rows.values() if o.generated_key == key]

    def find_by_day_key(self, day_key: str) -> list[Occurrence]:
        return sorted((o for o in self.rows.values() if o.day_key == day_key), key=lambda o: o.start_at)

    def find_by_template(self, template_id, start=None, end=None) -> list[Occurrence]:
        rows = [o for o in self.rows.values() if o.template_id == template_id
                and (start is None or o.start_at >= start) and (end is None or o.start_at < end)]
        return sorted(rows, key=lambda o: o.start_at)

    def add(self, occurrence: Occurrence) -> None:
        self.rows[occurrence.id] = occurrence

    def delete(self, occurrence: Occurrence) -> None:
        self.rows.pop(occurrence.id, None)

    def commit(self) -> None:
        if self.failing_commits > 0:
            self.failing_commits -= 1
            raise RuntimeError("commit failed")
        self.commits += 1

    def rollback(self) -> None:
        pass


class FakeOverrideStore:
    def __init__(self):
        self.rows: dict[str, DayOverride] = {}

    def add(self, override: DayOverride) -> None:
        self.rows[override.key] = override

    def find_by_key(self, key: str) -> list[DayOverride]:
        return [self.rows[key]] if key in self.rows else []

    def find_by_day_key(self, day_key: str) -> list[DayOverride]:
        return [ov for ov in self.rows.values() if ov.day_key == day_key]

    def find_by_template(self, template_id, from_day_key=None, to_day_key=None) -> list[DayOverride]:
        return [ov for ov in self.rows.values() if ov.template_id == template_id
                and (from_day_key is None or ov.day_key >= from_day_key)
                and (to_day_key is None or ov.day_key < to_day_key)]

    def delete_by_key(self, key: str) -> int:
        return 1 if self.rows.pop(key, None) is not None else 0


# ======================================================================
# Fixtures
# ======================================================================


@pytest.fixture
def calendar():
    return DayCalendar()


@pytest.fixture
def template_store():
    return FakeTemplateStore()


@pytest.fixture
def occurrence_store():
    return FakeOccurrenceStore()


@pytest.fixture
def override_store():
    return FakeOverrideStore()


@pytest.fixture
def make_template(template_store):
    """Register a template; daily from 2025-01-01, 07:00 for 30 minutes by default."""

    def _make(title: str = "Morning", start_minute: int = 7 * 60, duration_minutes: int = 30,
              rule: Optional[RecurrenceRule] = None, is_enabled: bool = True,
              kind: ActivityKind = ActivityKind.GENERIC, routine_id: Optional[uuid.UUID] = None, ) -> Template:
        rule = rule or RecurrenceRule(kind=RecurrenceKind.DAILY, start_date=datetime.date(2025, 1, 1))
        template = Template(title=title, is_enabled=is_enabled, start_minute=start_minute,
                            duration_minutes=duration_minutes, recurrence_data=rule.encode(), kind=kind,
                            workout_routine_id=routine_id, )
        template_store.rows[template.id] = template
        return template

    return _make


@pytest.fixture
def materializer(template_store, occurrence_store, override_store, calendar):
    return Materializer(template_store, occurrence_store, override_store, calendar)


@pytest.fixture
def skip_day(override_store):
    def _skip(template: Template, day: datetime.date,
              action: OverrideAction = OverrideAction.SKIPPED_TODAY) -> DayOverride:
        override = DayOverride.for_day(template.id, day.isoformat(), action)
        override_store.add(override)
        return override

    return _skip


@pytest.fixture
def draft_of():
    """Draft of a template with some fields changed."""

    def _draft(template: Template, **changes) -> TemplateDraft:
        values = {**TemplateDraft.from_template(template).model_dump(), **changes}
        return TemplateDraft(**values)

    return _draft
