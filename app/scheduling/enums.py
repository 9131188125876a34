"""
Enumerations shared by the activity models and the scheduling core.

Stored through SQLAlchemy ``Enum`` columns, which are the encode/decode
pair between the database strings and these types.
"""

from enum import Enum


class ActivityKind(str, Enum):
    """High-level category of a template or occurrence."""

    GENERIC = "generic"
    WORKOUT = "workout"


class OccurrenceStatus(str, Enum):
    PLANNED = "planned"
    DONE = "done"
    SKIPPED = "skipped"


class OverrideAction(str, Enum):
    SKIPPED_TODAY = "skipped_today"
    DELETED_TODAY = "deleted_today"
