from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime
from zoneinfo import ZoneInfo

from recurring_tasks.config import SETTINGS
from recurring_tasks.infra.db import init_db
from recurring_tasks.infra.logging import setup_logging
from recurring_tasks.infra.repository import SqlAlchemyTemplateRepository
from recurring_tasks.services.scheduler import SchedulerDriver

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(ZoneInfo(SETTINGS.scheduler_timezone)).date()


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recurring-tasks",
        description="Generate task instances from recurring task templates.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    batch = commands.add_parser("batch", help="run the daily sweep over all active templates")
    batch.add_argument("--date", type=_parse_date, default=None, help="run date (default: today)")

    generate = commands.add_parser("generate", help="generate immediately for one template")
    generate.add_argument("template_id")
    generate.add_argument("--date", type=_parse_date, default=None, help="target date (default: today)")

    catch_up = commands.add_parser("catch-up", help="replay the sweep for missed days")
    catch_up.add_argument("--since", type=_parse_date, required=True)
    catch_up.add_argument("--until", type=_parse_date, default=None, help="last day (default: today)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.error("Database is not reachable: %s", exc)
        return 2

    driver = SchedulerDriver(SqlAlchemyTemplateRepository(), max_workers=SETTINGS.scheduler_max_workers)
    try:
        if args.command == "batch":
            report = driver.batch_run(args.date or _today())
            return 1 if report.error else 0
        if args.command == "generate":
            created = driver.generate_now(args.template_id, args.date or _today())
            print("created" if created else "not generated")
            return 0
        until = args.until or _today()
        if args.since > until:
            logger.error("--since %s is after --until %s", args.since, until)
            return 2
        reports = driver.catch_up(args.since, until)
        return 1 if any(report.error for report in reports) else 0
    finally:
        driver.shutdown()


if __name__ == "__main__":
    sys.exit(main())
