"""
Day calendar and textual keys.

Occurrence datetimes are naive *local wall-clock* values in the configured
time zone.  The calendar turns them into day starts and ``YYYY-MM-DD`` day
keys; the ``"{template_id}|{day_key}"`` composite joins templates,
occurrences and overrides.
"""

from __future__ import annotations

import datetime
import uuid
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

KEY_SEPARATOR = "|"


class DayCalendar(BaseModel):
    """Local calendar used to anchor template minutes to concrete days."""

    model_config = ConfigDict(frozen=True)

    timezone: str = "UTC"

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def today(self) -> datetime.date:
        return datetime.datetime.now(self.zone).date()

    @staticmethod
    def start_of_day(value: datetime.date | datetime.datetime) -> datetime.datetime:
        """Midnight of the calendar day containing *value*."""
        if isinstance(value, datetime.datetime):
            value = value.date()
        return datetime.datetime.combine(value, datetime.time.min)

    @classmethod
    def day_key(cls, value: datetime.date | datetime.datetime) -> str:
        return cls.start_of_day(value).strftime("%Y-%m-%d")

    @staticmethod
    def at_minute(day_start: datetime.datetime, minutes: int) -> datetime.datetime:
        return day_start + datetime.timedelta(minutes=minutes)


DEFAULT_CALENDAR = DayCalendar()


def generated_key(template_id: uuid.UUID, day_key: str) -> str:
    """Idempotency key of a template's occurrence on one day."""
    return f"{template_id}{KEY_SEPARATOR}{day_key}"


def parse_generated_key(key: str) -> tuple[uuid.UUID, str]:
    """Split a generated / override key into ``(template_id, day_key)``.

    Raises :class:`ValueError` for malformed keys.
    """
    template_part, sep, day_key = key.partition(KEY_SEPARATOR)
    if not sep or not day_key:
        raise ValueError(f"Malformed key: {key!r}")
    datetime.date.fromisoformat(day_key)
    return uuid.UUID(template_part), day_key
