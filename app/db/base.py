"""
Base database configuration.

Import all models here so Alembic can detect them for migrations.
"""

# Import all models for Alembic autogenerate
from app.models.template import Template  # noqa: F401
from app.models.occurrence import Occurrence  # noqa: F401
from app.models.day_override import DayOverride  # noqa: F401
