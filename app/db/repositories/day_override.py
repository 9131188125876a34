"""Day override repository."""

import uuid
from typing import Optional

from loguru import logger
from sqlmodel import Session, select

from app.models.day_override import DayOverride
from app.scheduling.calendar import parse_generated_key


class DayOverrideRepository:
    """Repository for DayOverride database operations."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_key(self, key: str) -> list[DayOverride]:
        statement = select(DayOverride).where(DayOverride.key == key)
        return list(self.session.exec(statement).all())

    def find_by_day_key(self, day_key: str) -> list[DayOverride]:
        statement = select(DayOverride).where(DayOverride.day_key == day_key)
        return list(self.session.exec(statement).all())

    def find_by_template(self, template_id: uuid.UUID, from_day_key: Optional[str] = None,
                         to_day_key: Optional[str] = None, ) -> list[DayOverride]:
        statement = select(DayOverride).where(DayOverride.template_id == template_id)
        if from_day_key is not None:
            statement = statement.where(DayOverride.day_key >= from_day_key)
        if to_day_key is not None:
            statement = statement.where(DayOverride.day_key < to_day_key)
        overrides = self.session.exec(statement.order_by(DayOverride.day_key)).all()
        return [ov for ov in overrides if _key_matches(ov, template_id)]

    def add(self, override: DayOverride) -> None:
        """Stage *override*, replacing an existing one for the same key."""
        self.session.merge(override)

    def delete_by_key(self, key: str) -> int:
        overrides = self.find_by_key(key)
        for override in overrides:
            self.session.delete(override)
        return len(overrides)


def _key_matches(override: DayOverride, template_id: uuid.UUID) -> bool:
    """Keys are the source of truth for the (template, day) join."""
    try:
        key_template_id, key_day = parse_generated_key(override.key)
    except ValueError:
        logger.warning(f"Ignoring day override with malformed key {override.key!r}")
        return False
    return key_template_id == template_id and key_day == override.day_key
