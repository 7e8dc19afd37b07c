from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class TaskPriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class RecurrenceType(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class MaterializeStatus(StrEnum):
    CREATED = "created"
    SKIPPED = "skipped"


class TemplateOutcome(StrEnum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    NOT_DUE = "not_due"
    INACTIVE = "inactive"
    FAILED = "failed"
