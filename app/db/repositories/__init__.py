"""Database repositories."""

from app.db.repositories.template import TemplateRepository
from app.db.repositories.occurrence import OccurrenceRepository
from app.db.repositories.day_override import DayOverrideRepository

__all__ = [
    "TemplateRepository",
    "OccurrenceRepository",
    "DayOverrideRepository",
]
