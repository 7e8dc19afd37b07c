"""
Scheduler driver for recurring task generation.

Two entry points share one per-template path:

- ``batch_run(today)`` is the daily sweep over every active, in-window template.
- ``generate_now(template_id, target)`` is the immediate trigger used after a
  template is created, reactivated or has its start date moved into the past.

Per template the driver asks the calculator whether the date is due, asks the
materializer to create the task, then advances the template's watermark.
Failures are contained at template granularity: they are logged, the
watermark stays where it was, and the sweep carries on with the next template.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import date, timedelta

from recurring_tasks.domain.entities import BatchReport, TaskTemplate
from recurring_tasks.domain.enums import TemplateOutcome
from recurring_tasks.domain.errors import PersistenceError, ValidationError
from recurring_tasks.domain.ports import TemplateRepository

from .materializer import TaskMaterializer
from .recurrence import RecurrenceCalculator

logger = logging.getLogger(__name__)


class SchedulerDriver:
    def __init__(
        self,
        repo: TemplateRepository,
        calculator: RecurrenceCalculator | None = None,
        materializer: TaskMaterializer | None = None,
        max_workers: int = 1,
    ) -> None:
        self._repo = repo
        self._calculator = calculator or RecurrenceCalculator()
        self._materializer = materializer or TaskMaterializer(repo)
        self._max_workers = max(max_workers, 1)
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def batch_run(self, today: date, stop_event: threading.Event | None = None) -> BatchReport:
        report = BatchReport(run_date=today)
        logger.info("Starting recurring task generation for %s", today)
        try:
            templates = self._repo.find_due_templates(today)
        except PersistenceError as exc:
            logger.error("Could not load templates for %s: %s", today, exc)
            report.error = str(exc)
            return report

        if self._max_workers > 1 and len(templates) > 1:
            self._run_parallel(templates, today, report, stop_event)
        else:
            for template in templates:
                if stop_event is not None and stop_event.is_set():
                    report.cancelled = True
                    break
                outcome, reason = self._process(template, today)
                report.record(template.id, outcome, reason)

        logger.info(
            "Generated %s recurring tasks for %s (%s templates, %s failed)",
            report.created,
            today,
            len(templates),
            report.failed,
        )
        return report

    def generate_now(self, template_id: str, target: date) -> bool:
        try:
            template = self._repo.get_template(template_id)
        except PersistenceError as exc:
            logger.error("Failed to load template %s for immediate generation: %s", template_id, exc)
            return False

        if template is None:
            logger.warning("Template %s not found for immediate generation", template_id)
            return False

        outcome, _ = self._process(template, target)
        if outcome == TemplateOutcome.CREATED:
            logger.info("Immediately generated task from template %s for %s", template_id, target)
        return outcome == TemplateOutcome.CREATED

    def submit_generate_now(self, template_id: str, target: date) -> Future:
        """Run ``generate_now`` in the background and return its future."""
        return self._get_executor().submit(self.generate_now, template_id, target)

    def catch_up(self, since: date, until: date, stop_event: threading.Event | None = None) -> list[BatchReport]:
        """Replay the daily sweep for every day in ``[since, until]``, oldest first."""
        reports: list[BatchReport] = []
        day = since
        while day <= until:
            if stop_event is not None and stop_event.is_set():
                break
            reports.append(self.batch_run(day, stop_event))
            day += timedelta(days=1)
        return reports

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def _process(self, template: TaskTemplate, target: date) -> tuple[TemplateOutcome, str | None]:
        if not template.is_active:
            logger.debug("Template %s is not active, skipping", template.id)
            return TemplateOutcome.INACTIVE, None

        try:
            template.validate()
            if not self._calculator.is_due(template, target):
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Template %s not due on %s, next occurrence %s",
                        template.id,
                        target,
                        self._calculator.next_occurrence(template, target),
                    )
                return TemplateOutcome.NOT_DUE, None
            result = self._materializer.materialize(template, target)
        except ValidationError as exc:
            logger.warning("Skipping template %s for %s: %s", template.id, target, exc)
            return TemplateOutcome.FAILED, str(exc)
        except PersistenceError as exc:
            logger.error("Failed to generate task from template %s for %s: %s", template.id, target, exc)
            return TemplateOutcome.FAILED, str(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error generating task from template %s for %s", template.id, target)
            return TemplateOutcome.FAILED, f"{type(exc).__name__}: {exc}"

        # A skipped duplicate still means the date is covered; advancing here
        # repairs a watermark write lost after an earlier successful insert.
        self._advance_watermark(template, target)
        if result.created:
            return TemplateOutcome.CREATED, None
        return TemplateOutcome.DUPLICATE, None

    def _advance_watermark(self, template: TaskTemplate, target: date) -> None:
        try:
            self._repo.advance_watermark(template.id, target)
        except PersistenceError as exc:
            # The task is in place; the next trigger sees a duplicate and retries this.
            logger.error("Failed to advance watermark of template %s to %s: %s", template.id, target, exc)

    def _run_parallel(
        self,
        templates: list[TaskTemplate],
        today: date,
        report: BatchReport,
        stop_event: threading.Event | None,
    ) -> None:
        def work(template: TaskTemplate) -> tuple[TemplateOutcome, str | None] | None:
            if stop_event is not None and stop_event.is_set():
                return None
            return self._process(template, today)

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="recurring-batch") as pool:
            futures = {pool.submit(work, template): template.id for template in templates}
            for future in as_completed(futures):
                result = future.result()
                if result is None:
                    report.cancelled = True
                    continue
                outcome, reason = result
                report.record(futures[future], outcome, reason)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="recurring-now"
                )
            return self._executor
