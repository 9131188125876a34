"""Business logic services."""

from app.services.template_service import TemplateService
from app.services.template_update_service import TemplateUpdateService
from app.services.occurrence_service import OccurrenceService

__all__ = [
    "TemplateService",
    "TemplateUpdateService",
    "OccurrenceService",
]
