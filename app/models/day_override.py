"""
Day override database model.

One row per suppressed ``(template, day)`` pair.  While it exists the
template neither materializes nor updates that day's occurrence; only an
explicit resurrection (a plan re-applying the template to that day)
deletes it.
"""

import datetime
import uuid

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.scheduling.enums import OverrideAction
from app.scheduling.calendar import generated_key


class DayOverride(SQLModel, table=True):
    """Per-(template, day) suppression marker."""

    __tablename__ = "day_overrides"

    # "{template_id}|{day_key}", same text as Occurrence.generated_key
    key: str = Field(primary_key=True, max_length=64)
    template_id: uuid.UUID = Field(nullable=False, index=True)
    day_key: str = Field(nullable=False, max_length=10, index=True)
    action: OverrideAction = Field(default=OverrideAction.SKIPPED_TODAY, nullable=False)

    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow, sa_type=DateTime)

    @classmethod
    def for_day(cls, template_id: uuid.UUID, day_key: str, action: OverrideAction) -> "DayOverride":
        return cls(key=generated_key(template_id, day_key), template_id=template_id, day_key=day_key,
                   action=action, )
