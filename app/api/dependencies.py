"""
Shared API dependencies.

Reusable FastAPI dependencies for database access and the day calendar.
"""

from app.core.config import settings
from app.scheduling.calendar import DayCalendar


def get_calendar() -> DayCalendar:
    """The calendar that day keys and day boundaries are computed in."""
    return DayCalendar(timezone=settings.TIMEZONE)
