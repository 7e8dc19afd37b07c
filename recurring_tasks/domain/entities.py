from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .enums import MaterializeStatus, RecurrenceType, TaskPriority, TaskStatus, TemplateOutcome
from .errors import MalformedTemplateError


@dataclass(frozen=True)
class TaskTemplate:
    id: str
    title: str
    recurrence_type: RecurrenceType
    start_date: date
    created_by_id: str
    recurrence_interval: int = 1
    end_date: Optional[date] = None
    is_active: bool = True
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    default_assignee_ids: tuple[str, ...] = ()
    default_customer_id: str | None = None
    default_tags: tuple[str, ...] = ()
    default_estimated_hours: Optional[Decimal] = None
    last_generated_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> None:
        if self.recurrence_interval < 1:
            raise MalformedTemplateError(
                f"Template {self.id} has non-positive recurrence interval {self.recurrence_interval}"
            )
        if self.end_date is not None and self.end_date < self.start_date:
            raise MalformedTemplateError(
                f"Template {self.id} ends ({self.end_date}) before it starts ({self.start_date})"
            )

    def covers(self, day: date) -> bool:
        """True when ``day`` lies inside the template's inclusive window."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


@dataclass(frozen=True)
class NewGeneratedTask:
    template_id: str
    generated_for_date: date
    generated_at: datetime
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    created_by_id: str
    assigned_to_id: str | None
    assignee_ids: tuple[str, ...]
    customer_id: str | None
    tags: tuple[str, ...]
    estimated_hours: Optional[Decimal]


@dataclass(frozen=True)
class GeneratedTask:
    id: str
    template_id: str | None
    generated_for_date: Optional[date]
    generated_at: Optional[datetime]
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    created_by_id: str
    assigned_to_id: str | None
    customer_id: str | None
    tags: tuple[str, ...]
    estimated_hours: Optional[Decimal]
    created_at: datetime
    assignee_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class MaterializeResult:
    status: MaterializeStatus
    task_id: str | None = None

    @property
    def created(self) -> bool:
        return self.status is MaterializeStatus.CREATED


@dataclass
class BatchReport:
    run_date: date
    outcomes: dict[str, TemplateOutcome] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    cancelled: bool = False
    error: str | None = None

    def record(self, template_id: str, outcome: TemplateOutcome, reason: str | None = None) -> None:
        self.outcomes[template_id] = outcome
        if reason is not None:
            self.failures[template_id] = reason

    def count(self, outcome: TemplateOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value == outcome)

    @property
    def created(self) -> int:
        return self.count(TemplateOutcome.CREATED)

    @property
    def failed(self) -> int:
        return self.count(TemplateOutcome.FAILED)
