from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from recurring_tasks.domain.enums import MaterializeStatus, TaskPriority, TaskStatus
from recurring_tasks.domain.errors import AssigneeValidationError, PersistenceError
from recurring_tasks.services.materializer import TaskMaterializer

from fakes import FakeTemplateRepo, make_template

FIXED_NOW = datetime(2024, 1, 1, 0, 5, tzinfo=timezone.utc)


def test_copies_template_defaults_into_task() -> None:
    template = make_template(
        description="Check the shared inbox",
        status=TaskStatus.IN_PROGRESS,
        priority=TaskPriority.HIGH,
        default_assignee_ids=("user-a", "user-b"),
        default_customer_id="cust-9",
        default_tags=("support", "daily"),
        default_estimated_hours=Decimal("1.50"),
    )
    repo = FakeTemplateRepo([template], users={"user-a", "user-b"})
    materializer = TaskMaterializer(repo, clock=lambda: FIXED_NOW)

    result = materializer.materialize(template, date(2024, 1, 1))

    assert result.status == MaterializeStatus.CREATED
    task = repo.tasks[(template.id, date(2024, 1, 1))]
    assert result.task_id == task.id
    assert task.title == template.title
    assert task.description == "Check the shared inbox"
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.priority == TaskPriority.HIGH
    assert task.created_by_id == "user-owner"
    assert task.assigned_to_id == "user-a"
    assert task.assignee_ids == ("user-a", "user-b")
    assert task.customer_id == "cust-9"
    assert task.tags == ("support", "daily")
    assert task.estimated_hours == Decimal("1.50")
    assert task.generated_at == FIXED_NOW
    assert task.generated_for_date == date(2024, 1, 1)


def test_template_without_assignees_creates_unassigned_task() -> None:
    template = make_template()
    repo = FakeTemplateRepo([template])

    result = TaskMaterializer(repo).materialize(template, date(2024, 1, 1))

    assert result.created
    task = repo.tasks[(template.id, date(2024, 1, 1))]
    assert task.assigned_to_id is None
    assert task.assignee_ids == ()


def test_duplicate_assignee_ids_are_linked_once() -> None:
    template = make_template(default_assignee_ids=("user-a", "user-a", "user-b"))
    repo = FakeTemplateRepo([template], users={"user-a", "user-b"})

    TaskMaterializer(repo).materialize(template, date(2024, 1, 1))

    assert repo.tasks[(template.id, date(2024, 1, 1))].assignee_ids == ("user-a", "user-b")


def test_missing_assignee_raises_with_ids() -> None:
    template = make_template(default_assignee_ids=("user-a", "user-gone", "user-left"))
    repo = FakeTemplateRepo([template], users={"user-a"})

    with pytest.raises(AssigneeValidationError) as excinfo:
        TaskMaterializer(repo).materialize(template, date(2024, 1, 1))

    assert excinfo.value.missing_ids == ("user-gone", "user-left")
    assert excinfo.value.template_id == template.id
    assert repo.tasks == {}


def test_existing_task_is_skipped() -> None:
    template = make_template()
    repo = FakeTemplateRepo([template])
    materializer = TaskMaterializer(repo)
    first = materializer.materialize(template, date(2024, 1, 1))

    second = materializer.materialize(template, date(2024, 1, 1))

    assert first.created
    assert second.status == MaterializeStatus.SKIPPED
    assert second.task_id is None
    assert len(repo.tasks) == 1


def test_unique_violation_after_precheck_is_skipped() -> None:
    template = make_template()
    repo = FakeTemplateRepo([template])
    materializer = TaskMaterializer(repo)

    def sneak_in_competitor() -> None:
        repo.on_exists_check = None
        TaskMaterializer(repo).materialize(template, date(2024, 1, 1))

    repo.on_exists_check = sneak_in_competitor

    result = materializer.materialize(template, date(2024, 1, 1))

    assert result.status == MaterializeStatus.SKIPPED
    assert len(repo.tasks) == 1


def test_persistence_error_propagates() -> None:
    template = make_template()
    repo = FakeTemplateRepo([template])
    repo.failing_templates.add(template.id)

    with pytest.raises(PersistenceError):
        TaskMaterializer(repo).materialize(template, date(2024, 1, 1))
