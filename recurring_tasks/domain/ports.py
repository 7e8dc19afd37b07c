"""
Storage port used by the generation engine.

The engine depends on this Protocol only; the SQLAlchemy implementation lives
in ``recurring_tasks.infra.repository`` and tests substitute in-memory fakes.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from .entities import NewGeneratedTask, TaskTemplate


class TemplateRepository(Protocol):
    def find_due_templates(self, today: date) -> list[TaskTemplate]:
        """Active templates whose window contains ``today``."""
        ...

    def get_template(self, template_id: str) -> Optional[TaskTemplate]:
        ...

    def advance_watermark(self, template_id: str, generated_for: date) -> bool:
        """
        Move ``last_generated_date`` forward to ``generated_for``.

        Never moves it backwards. Returns True if the row was updated.
        """
        ...

    def find_existing_user_ids(self, user_ids: Iterable[str]) -> set[str]:
        ...

    def generated_task_exists(self, template_id: str, generated_for: date) -> bool:
        ...

    def insert_generated_task(self, new_task: NewGeneratedTask) -> str:
        """
        Insert the task row and its assignee links atomically, return the task id.

        Raises DuplicateGenerationSkip when (template_id, generated_for_date)
        already exists and PersistenceError for any other storage failure.
        """
        ...
