"""
Store interfaces used by the scheduling core.

The SQLModel repositories in :mod:`app.db.repositories` implement these;
tests use in-memory fakes.
"""

from __future__ import annotations

import datetime
import uuid
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from app.models.day_override import DayOverride
    from app.models.occurrence import Occurrence
    from app.models.template import Template


class TemplateStore(Protocol):
    def get_by_id(self, template_id: uuid.UUID) -> Optional[Template]: ...

    def get_enabled(self) -> list[Template]: ...


class OccurrenceStore(Protocol):
    def get_by_id(self, occurrence_id: uuid.UUID) -> Optional[Occurrence]: ...

    def find_by_generated_key(self, key: str) -> list[Occurrence]: ...

    def find_by_day_key(self, day_key: str) -> list[Occurrence]: ...

    def find_by_template(self, template_id: uuid.UUID, start: Optional[datetime.datetime] = None,
                         end: Optional[datetime.datetime] = None, ) -> list[Occurrence]:
        """Occurrences linked to *template_id* with ``start <= start_at < end``."""
        ...

    def add(self, occurrence: Occurrence) -> None: ...

    def delete(self, occurrence: Occurrence) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None:
        """Discard changes not yet committed."""
        ...


class OverrideStore(Protocol):
    def find_by_key(self, key: str) -> list[DayOverride]: ...

    def find_by_day_key(self, day_key: str) -> list[DayOverride]: ...

    def find_by_template(self, template_id: uuid.UUID, from_day_key: Optional[str] = None,
                         to_day_key: Optional[str] = None, ) -> list[DayOverride]:
        """Overrides of *template_id* with ``from_day_key <= day_key < to_day_key``."""
        ...

    def delete_by_key(self, key: str) -> int: ...
