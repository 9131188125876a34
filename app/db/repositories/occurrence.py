"""
Occurrence repository.

Handles database operations for :class:`Occurrence`.  The lookup methods
are the ones the scheduling core relies on (see
:class:`app.scheduling.ports.OccurrenceStore`); ``add`` / ``delete`` only
stage changes, ``commit`` is the transaction boundary.
"""

import datetime
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models.occurrence import Occurrence


class OccurrenceRepository:
    """Repository for Occurrence database operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]:
        return self.session.get(Occurrence, occurrence_id)

    def find_by_generated_key(self, key: str) -> list[Occurrence]:
        statement = select(Occurrence).where(Occurrence.generated_key == key)
        return list(self.session.exec(statement).all())

    def find_by_day_key(self, day_key: str) -> list[Occurrence]:
        statement = select(Occurrence).where(Occurrence.day_key == day_key).order_by(Occurrence.start_at)
        return list(self.session.exec(statement).all())

    def find_in_range(self, start: datetime.datetime, end: datetime.datetime) -> list[Occurrence]:
        statement = (select(Occurrence).where(Occurrence.start_at >= start, Occurrence.start_at < end, ).order_by(
            Occurrence.start_at))
        return list(self.session.exec(statement).all())

    def find_by_template(self, template_id: uuid.UUID, start: Optional[datetime.datetime] = None,
                         end: Optional[datetime.datetime] = None, ) -> list[Occurrence]:
        statement = select(Occurrence).where(Occurrence.template_id == template_id)
        if start is not None:
            statement = statement.where(Occurrence.start_at >= start)
        if end is not None:
            statement = statement.where(Occurrence.start_at < end)
        return list(self.session.exec(statement.order_by(Occurrence.start_at)).all())

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def add(self, occurrence: Occurrence) -> None:
        self.session.add(occurrence)

    def delete(self, occurrence: Occurrence) -> None:
        self.session.delete(occurrence)

    def commit(self) -> None:
        """Commit the session; on failure roll it back and re-raise."""
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def rollback(self) -> None:
        self.session.rollback()

    # ------------------------------------------------------------------
    # Single-row mutation (API edits)
    # ------------------------------------------------------------------

    def update(self, occurrence: Occurrence) -> Occurrence:
        self.session.add(occurrence)
        self.commit()
        self.session.refresh(occurrence)
        return occurrence

    def remove(self, occurrence: Occurrence) -> None:
        self.session.delete(occurrence)
        self.commit()
