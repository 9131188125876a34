"""SQLModel database models."""

from app.models.template import Template
from app.models.occurrence import Occurrence
from app.models.day_override import DayOverride

__all__ = [
    "Template",
    "Occurrence",
    "DayOverride",
]
