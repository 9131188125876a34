"""Errors raised while applying template update plans."""

import uuid


class TemplateUpdateError(Exception):
    """Base class for plan application failures."""


class MissingOccurrenceError(TemplateUpdateError):
    """An occurrence referenced by a plan no longer exists."""

    def __init__(self, occurrence_id: uuid.UUID):
        self.occurrence_id = occurrence_id
        super().__init__(f"Could not fetch occurrence {occurrence_id}.")


class RollbackError(TemplateUpdateError):
    """One or more rollback steps failed.

    ``failures`` holds ``(step, exception)`` pairs, e.g.
    ``("restore <id>", exc)``.
    """

    def __init__(self, failures: list[tuple[str, BaseException]]):
        self.failures = failures
        steps = ", ".join(step for step, _ in failures)
        super().__init__(f"Rollback incomplete ({len(failures)} failed steps: {steps})")
