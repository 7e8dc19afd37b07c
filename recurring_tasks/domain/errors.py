from __future__ import annotations

from datetime import date
from typing import Iterable


class RecurringTaskError(Exception):
    """Base class for errors raised by the generation engine."""


class ValidationError(RecurringTaskError):
    pass


class AssigneeValidationError(ValidationError):
    def __init__(self, template_id: str, missing_ids: Iterable[str]) -> None:
        self.template_id = template_id
        self.missing_ids = tuple(sorted(missing_ids))
        super().__init__(
            f"Template {template_id} references unknown assignees: {', '.join(self.missing_ids)}"
        )


class MalformedTemplateError(ValidationError):
    pass


class DuplicateGenerationSkip(RecurringTaskError):
    """A task for (template, date) already exists. Not a failure."""

    def __init__(self, template_id: str, generated_for: date) -> None:
        self.template_id = template_id
        self.generated_for = generated_for
        super().__init__(f"Task for template {template_id} on {generated_for.isoformat()} already exists")


class PersistenceError(RecurringTaskError):
    def __init__(self, message: str, template_id: str | None = None, target_date: date | None = None) -> None:
        self.template_id = template_id
        self.target_date = target_date
        super().__init__(message)
