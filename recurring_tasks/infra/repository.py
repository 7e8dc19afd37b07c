from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recurring_tasks.domain.entities import GeneratedTask, NewGeneratedTask, TaskTemplate
from recurring_tasks.domain.enums import RecurrenceType, TaskPriority, TaskStatus
from recurring_tasks.domain.errors import DuplicateGenerationSkip, PersistenceError

from .models import TaskAssigneeModel, TaskModel, TaskTemplateModel, UserModel

logger = logging.getLogger(__name__)


def _to_template(model: TaskTemplateModel) -> TaskTemplate:
    hours = model.default_estimated_hours
    return TaskTemplate(
        id=model.id,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        priority=TaskPriority(model.priority),
        recurrence_type=RecurrenceType(model.recurrence_type),
        recurrence_interval=model.recurrence_interval,
        is_active=model.is_active,
        start_date=model.start_date,
        end_date=model.end_date,
        default_assignee_ids=tuple(model.default_assignee_ids or ()),
        default_customer_id=model.default_customer_id,
        default_tags=tuple(model.default_tags or ()),
        default_estimated_hours=Decimal(hours) if hours is not None else None,
        created_by_id=model.created_by_id,
        last_generated_date=model.last_generated_date,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_task(model: TaskModel, assignee_ids: Iterable[str]) -> GeneratedTask:
    return GeneratedTask(
        id=model.id,
        template_id=model.template_id,
        generated_for_date=model.generated_for_date,
        generated_at=model.generated_at,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        priority=TaskPriority(model.priority),
        created_by_id=model.created_by_id,
        assigned_to_id=model.assigned_to_id,
        customer_id=model.customer_id,
        tags=tuple(model.tags or ()),
        estimated_hours=model.estimated_hours,
        created_at=model.created_at,
        assignee_ids=tuple(assignee_ids),
    )


class SqlAlchemyTemplateRepository:
    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        if session_factory is None:
            from .db import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def find_due_templates(self, today: date) -> list[TaskTemplate]:
        stmt = (
            select(TaskTemplateModel)
            .where(
                TaskTemplateModel.is_active.is_(True),
                TaskTemplateModel.start_date <= today,
                or_(TaskTemplateModel.end_date.is_(None), TaskTemplateModel.end_date >= today),
            )
            .order_by(TaskTemplateModel.created_at.asc(), TaskTemplateModel.id.asc())
        )
        try:
            with self._session_factory() as session:
                return [_to_template(model) for model in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Template sweep query failed: {exc}", target_date=today) from exc

    def get_template(self, template_id: str) -> Optional[TaskTemplate]:
        try:
            with self._session_factory() as session:
                model = session.get(TaskTemplateModel, template_id)
                return _to_template(model) if model else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Template lookup failed: {exc}", template_id=template_id) from exc

    def advance_watermark(self, template_id: str, generated_for: date) -> bool:
        # Conditional update keeps the watermark monotonic with concurrent writers.
        stmt = (
            update(TaskTemplateModel)
            .where(
                TaskTemplateModel.id == template_id,
                or_(
                    TaskTemplateModel.last_generated_date.is_(None),
                    TaskTemplateModel.last_generated_date < generated_for,
                ),
            )
            .values(last_generated_date=generated_for)
            .execution_options(synchronize_session=False)
        )
        try:
            with self._session_factory() as session:
                result = session.execute(stmt)
                session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Could not advance watermark: {exc}", template_id=template_id, target_date=generated_for
            ) from exc

    def find_existing_user_ids(self, user_ids: Iterable[str]) -> set[str]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return set()
        try:
            with self._session_factory() as session:
                return set(session.scalars(select(UserModel.id).where(UserModel.id.in_(ids))))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"User lookup failed: {exc}") from exc

    def generated_task_exists(self, template_id: str, generated_for: date) -> bool:
        try:
            with self._session_factory() as session:
                return self._generated_task_exists(session, template_id, generated_for)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Existence check failed: {exc}", template_id=template_id, target_date=generated_for
            ) from exc

    def insert_generated_task(self, new_task: NewGeneratedTask) -> str:
        template_id = new_task.template_id
        target = new_task.generated_for_date
        with self._session_factory() as session:
            task = TaskModel(
                title=new_task.title,
                description=new_task.description,
                status=new_task.status.value,
                priority=new_task.priority.value,
                assigned_to_id=new_task.assigned_to_id,
                created_by_id=new_task.created_by_id,
                customer_id=new_task.customer_id,
                tags=list(new_task.tags),
                estimated_hours=new_task.estimated_hours,
                template_id=template_id,
                generated_at=new_task.generated_at,
                generated_for_date=target,
            )
            session.add(task)
            try:
                # Flush the task row on its own so its IntegrityError is not confused
                # with a failure on the assignee links.
                session.flush()
            except IntegrityError as exc:
                session.rollback()
                if self._generated_task_exists(session, template_id, target):
                    raise DuplicateGenerationSkip(template_id, target) from exc
                raise PersistenceError(
                    f"Task insert rejected: {exc.orig}", template_id=template_id, target_date=target
                ) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(
                    f"Task insert failed: {exc}", template_id=template_id, target_date=target
                ) from exc

            task_id = task.id
            try:
                for user_id in new_task.assignee_ids:
                    session.add(TaskAssigneeModel(task_id=task_id, user_id=user_id))
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(
                    f"Assignee insert failed: {exc}", template_id=template_id, target_date=target
                ) from exc
            logger.debug("Inserted task %s for template %s on %s", task_id, template_id, target)
            return task_id

    def list_generated_tasks(self, template_id: str) -> list[GeneratedTask]:
        with self._session_factory() as session:
            tasks = list(
                session.scalars(
                    select(TaskModel)
                    .where(TaskModel.template_id == template_id)
                    .order_by(TaskModel.generated_for_date.asc())
                )
            )
            if not tasks:
                return []
            links = session.execute(
                select(TaskAssigneeModel.task_id, TaskAssigneeModel.user_id)
                .where(TaskAssigneeModel.task_id.in_([task.id for task in tasks]))
                .order_by(TaskAssigneeModel.assigned_at.asc(), TaskAssigneeModel.id.asc())
            ).all()
            assignees: dict[str, list[str]] = {}
            for row in links:
                assignees.setdefault(row.task_id, []).append(row.user_id)
            return [_to_task(task, assignees.get(task.id, ())) for task in tasks]

    @staticmethod
    def _generated_task_exists(session: Session, template_id: str, generated_for: date) -> bool:
        found = session.scalar(
            select(TaskModel.id)
            .where(
                TaskModel.template_id == template_id,
                TaskModel.generated_for_date == generated_for,
            )
            .limit(1)
        )
        return found is not None
