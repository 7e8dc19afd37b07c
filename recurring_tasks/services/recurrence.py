from __future__ import annotations

import logging
from datetime import date

from recurring_tasks.domain.calendar import CalendarStep, GregorianCalendar, step
from recurring_tasks.domain.entities import TaskTemplate

logger = logging.getLogger(__name__)


class RecurrenceCalculator:
    """Decides whether a template's pattern lands on a given date. No I/O."""

    def __init__(self, calendar: CalendarStep | None = None) -> None:
        self._calendar = calendar or GregorianCalendar()

    def is_due(self, template: TaskTemplate, target: date) -> bool:
        if not template.covers(target):
            return False

        anchor = self.anchor(template)
        if anchor is None:
            return False
        if anchor == target:
            return True
        if anchor > target:
            return False

        landed = self._advance_until(template, anchor, target)
        return landed == target

    def anchor(self, template: TaskTemplate) -> date | None:
        watermark = template.last_generated_date
        # A watermark from before the current window (start date moved forward)
        # no longer describes this series.
        if watermark is None or watermark < template.start_date:
            return template.start_date
        return self._advance_once(template, watermark)

    def next_occurrence(self, template: TaskTemplate, on_or_after: date) -> date | None:
        """First due date not earlier than ``on_or_after``, or None if the window closes first."""
        anchor = self.anchor(template)
        if anchor is None:
            return None
        if anchor < on_or_after:
            anchor = self._advance_until(template, anchor, on_or_after)
            if anchor is None:
                return None
        if template.end_date is not None and anchor > template.end_date:
            return None
        return anchor

    def _advance_until(self, template: TaskTemplate, anchor: date, target: date) -> date | None:
        current = anchor
        while current < target:
            current = self._advance_once(template, current)
            if current is None:
                return None
        return current

    def _advance_once(self, template: TaskTemplate, current: date) -> date | None:
        try:
            following = self._step(template, current)
        except (ValueError, OverflowError):
            logger.warning(
                "Template %s steps past the last representable date (%s x%s from %s); skipping",
                template.id,
                template.recurrence_type,
                template.recurrence_interval,
                current,
            )
            return None
        if following <= current:
            logger.warning(
                "Template %s does not advance (%s x%s from %s); skipping",
                template.id,
                template.recurrence_type,
                template.recurrence_interval,
                current,
            )
            return None
        return following

    def _step(self, template: TaskTemplate, base: date) -> date:
        return step(self._calendar, base, template.recurrence_type, template.recurrence_interval)
