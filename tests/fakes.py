from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Iterable

from recurring_tasks.domain.entities import GeneratedTask, NewGeneratedTask, TaskTemplate
from recurring_tasks.domain.enums import RecurrenceType
from recurring_tasks.domain.errors import DuplicateGenerationSkip, PersistenceError


class FakeTemplateRepo:
    """
    In-memory TemplateRepository.

    The (template_id, generated_for_date) key is enforced under a lock, the same
    way the storage layer's unique constraint would be.
    """

    def __init__(self, templates: Iterable[TaskTemplate] = (), users: Iterable[str] = ()) -> None:
        self.templates: dict[str, TaskTemplate] = {t.id: t for t in templates}
        self.users: set[str] = set(users)
        self.tasks: dict[tuple[str, date], GeneratedTask] = {}
        self.failing_templates: set[str] = set()
        self.failing_watermarks: set[str] = set()
        self.on_exists_check: Callable[[], None] | None = None
        self._lock = threading.Lock()
        self._next_id = 1

    def add_template(self, template: TaskTemplate) -> TaskTemplate:
        self.templates[template.id] = template
        return template

    def update_template(self, template_id: str, **changes) -> TaskTemplate:
        updated = replace(self.templates[template_id], **changes)
        self.templates[template_id] = updated
        return updated

    def find_due_templates(self, today: date) -> list[TaskTemplate]:
        return [
            t
            for t in self.templates.values()
            if t.is_active and t.start_date <= today and (t.end_date is None or t.end_date >= today)
        ]

    def get_template(self, template_id: str) -> TaskTemplate | None:
        return self.templates.get(template_id)

    def advance_watermark(self, template_id: str, generated_for: date) -> bool:
        if template_id in self.failing_watermarks:
            raise PersistenceError("watermark store unavailable", template_id=template_id)
        with self._lock:
            template = self.templates.get(template_id)
            if template is None:
                return False
            if template.last_generated_date is not None and template.last_generated_date >= generated_for:
                return False
            self.templates[template_id] = replace(template, last_generated_date=generated_for)
            return True

    def find_existing_user_ids(self, user_ids: Iterable[str]) -> set[str]:
        return {user_id for user_id in user_ids if user_id in self.users}

    def generated_task_exists(self, template_id: str, generated_for: date) -> bool:
        exists = (template_id, generated_for) in self.tasks
        if self.on_exists_check is not None:
            self.on_exists_check()
        return exists

    def insert_generated_task(self, new_task: NewGeneratedTask) -> str:
        if new_task.template_id in self.failing_templates:
            raise PersistenceError("database unavailable", template_id=new_task.template_id)
        key = (new_task.template_id, new_task.generated_for_date)
        with self._lock:
            if key in self.tasks:
                raise DuplicateGenerationSkip(*key)
            task_id = f"task-{self._next_id}"
            self._next_id += 1
            self.tasks[key] = GeneratedTask(
                id=task_id,
                template_id=new_task.template_id,
                generated_for_date=new_task.generated_for_date,
                generated_at=new_task.generated_at,
                title=new_task.title,
                description=new_task.description,
                status=new_task.status,
                priority=new_task.priority,
                created_by_id=new_task.created_by_id,
                assigned_to_id=new_task.assigned_to_id,
                customer_id=new_task.customer_id,
                tags=new_task.tags,
                estimated_hours=new_task.estimated_hours,
                created_at=datetime.now(timezone.utc),
                assignee_ids=new_task.assignee_ids,
            )
            return task_id

    def list_generated_tasks(self, template_id: str) -> list[GeneratedTask]:
        return sorted(
            (task for (tid, _), task in self.tasks.items() if tid == template_id),
            key=lambda task: task.generated_for_date,
        )


def make_template(template_id: str = "tpl-1", **overrides) -> TaskTemplate:
    fields = dict(
        id=template_id,
        title="Review support inbox",
        recurrence_type=RecurrenceType.DAILY,
        recurrence_interval=1,
        start_date=date(2024, 1, 1),
        created_by_id="user-owner",
    )
    fields.update(overrides)
    return TaskTemplate(**fields)
