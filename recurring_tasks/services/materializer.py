from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable

from recurring_tasks.domain.entities import MaterializeResult, NewGeneratedTask, TaskTemplate
from recurring_tasks.domain.enums import MaterializeStatus
from recurring_tasks.domain.errors import AssigneeValidationError, DuplicateGenerationSkip
from recurring_tasks.domain.ports import TemplateRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskMaterializer:
    """Creates the concrete task for one (template, date) pair."""

    def __init__(self, repo: TemplateRepository, clock: Callable[[], datetime] = _utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def materialize(self, template: TaskTemplate, target: date) -> MaterializeResult:
        assignee_ids = tuple(dict.fromkeys(template.default_assignee_ids))
        self._check_assignees(template, assignee_ids)

        if self._repo.generated_task_exists(template.id, target):
            logger.info("Task for template %s on %s already exists", template.id, target)
            return MaterializeResult(MaterializeStatus.SKIPPED)

        new_task = self._build_task(template, target, assignee_ids)
        try:
            task_id = self._repo.insert_generated_task(new_task)
        except DuplicateGenerationSkip:
            logger.info("Lost generation race for template %s on %s", template.id, target)
            return MaterializeResult(MaterializeStatus.SKIPPED)

        logger.info("Created task %s from template %s for %s", task_id, template.id, target)
        return MaterializeResult(MaterializeStatus.CREATED, task_id=task_id)

    def _check_assignees(self, template: TaskTemplate, assignee_ids: tuple[str, ...]) -> None:
        if not assignee_ids:
            return
        found = self._repo.find_existing_user_ids(assignee_ids)
        missing = [user_id for user_id in assignee_ids if user_id not in found]
        if missing:
            raise AssigneeValidationError(template.id, missing)

    def _build_task(
        self, template: TaskTemplate, target: date, assignee_ids: tuple[str, ...]
    ) -> NewGeneratedTask:
        return NewGeneratedTask(
            template_id=template.id,
            generated_for_date=target,
            generated_at=self._clock(),
            title=template.title,
            description=template.description,
            status=template.status,
            priority=template.priority,
            created_by_id=template.created_by_id,
            # Legacy single-assignee column mirrors the first default assignee.
            assigned_to_id=assignee_ids[0] if assignee_ids else None,
            assignee_ids=assignee_ids,
            customer_id=template.default_customer_id,
            tags=template.default_tags,
            estimated_hours=template.default_estimated_hours,
        )
