"""
Recurrence rules.

A :class:`RecurrenceRule` answers a single question: does a calendar day
belong to the series?  Supported shapes:

- ``none``: a one-off on ``start_date``,
- ``daily``: every ``interval`` days from ``start_date``,
- ``weekly``: on the selected weekdays of every ``interval``-th week,
  counting whole weeks (``days // 7``) from ``start_date``.

Both bounds are inclusive.  Time of day is ignored.
"""

from __future__ import annotations

import datetime
from enum import Enum, IntEnum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field, ValidationError

from app.scheduling.calendar import DEFAULT_CALENDAR, DayCalendar


class RecurrenceKind(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


class Weekday(IntEnum):
    """ISO-style weekday, matching :meth:`datetime.date.weekday`."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class RecurrenceRule(BaseModel):
    """Recurrence definition of a template."""

    kind: RecurrenceKind = RecurrenceKind.NONE
    start_date: datetime.date
    end_date: Optional[datetime.date] = None
    interval: int = Field(1, ge=1, description="Every N days (daily) or N weeks (weekly)")
    weekdays: frozenset[Weekday] = Field(default_factory=frozenset, description="Used when kind is weekly")

    def matches(self, day: datetime.date | datetime.datetime, calendar: DayCalendar = DEFAULT_CALENDAR) -> bool:
        """Return ``True`` if *day* is part of the series."""
        day_date = calendar.start_of_day(day).date()

        if day_date < self.start_date:
            return False
        if self.end_date is not None and day_date > self.end_date:
            return False

        elapsed = (day_date - self.start_date).days

        if self.kind == RecurrenceKind.NONE:
            return elapsed == 0
        if self.kind == RecurrenceKind.DAILY:
            return elapsed % self.interval == 0

        # weekly
        if (elapsed // 7) % self.interval != 0:
            return False
        return Weekday(day_date.weekday()) in self.weekdays

    def occurrence_days(self, start: datetime.date, end: datetime.date,
                        calendar: DayCalendar = DEFAULT_CALENDAR, ) -> Iterator[datetime.date]:
        """Yield every matching day in the inclusive range ``[start, end]``."""
        day = start
        while day <= end:
            if self.matches(day, calendar):
                yield day
            day += datetime.timedelta(days=1)

    # ------------------------------------------------------------------
    # Storage encoding
    # ------------------------------------------------------------------

    def encode(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["weekdays"] = sorted(data["weekdays"])
        return data

    @classmethod
    def decode(cls, data: Optional[dict[str, Any]], fallback_start: datetime.date) -> RecurrenceRule:
        """Decode a stored rule.

        An empty or invalid payload decodes to a one-off on *fallback_start*.
        """
        if not data:
            return cls(kind=RecurrenceKind.NONE, start_date=fallback_start)
        try:
            return cls.model_validate(data)
        except ValidationError:
            return cls(kind=RecurrenceKind.NONE, start_date=fallback_start)
