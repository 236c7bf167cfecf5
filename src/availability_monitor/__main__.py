"""Command line entry point: ``python -m availability_monitor``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from typing import Any, Dict, Optional, Sequence

import orjson

from .config import ConfigurationError, MonitorSettings, load_monitor_settings
from .health import OverallHealth
from .logging_config import setup_logging
from .monitor_service import SERVICE_NAME, MonitorService, build_orchestrator
from .orchestrator_helpers import TickError
from .service_runner import run_async_service


def _print_json(payload: Dict[str, Any]) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2, default=str).decode("utf-8") + "\n")


def _errors(errors: Sequence[TickError]) -> list[Dict[str, Any]]:
    return [error.to_dict() for error in errors]


async def _check_once(settings: MonitorSettings, dry_run: bool) -> int:
    orchestrator = build_orchestrator(settings, dry_run=dry_run)
    orchestrator.startup()
    await orchestrator.restore_state()
    result = await orchestrator.check_tick()
    _print_json(
        {
            "success": result.success,
            "status": result.new_status.value,
            "notification_sent": result.notification_sent,
            "notification_queued": result.notification_queued,
            "errors": _errors(result.errors),
        }
    )
    return 0 if result.success else 1


async def _summary_once(settings: MonitorSettings, dry_run: bool, for_date: Optional[date]) -> int:
    orchestrator = build_orchestrator(settings, dry_run=dry_run)
    orchestrator.startup()
    await orchestrator.restore_state()
    result = await orchestrator.summary_tick(for_date)
    _print_json(
        {
            "success": result.success,
            "date": result.date,
            "due": result.due,
            "notification_sent": result.notification_sent,
            "errors": _errors(result.errors),
        }
    )
    return 0 if result.success else 1


async def _health(settings: MonitorSettings) -> int:
    orchestrator = build_orchestrator(settings, dry_run=True)
    orchestrator.startup()
    report = await orchestrator.run_health_checks()
    _print_json(report.to_dict())
    return 1 if report.overall is OverallHealth.UNHEALTHY else 0


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {raw!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="availability-monitor", description="Watch a product page and alert when it becomes available")
    parser.add_argument("--dry-run", action="store_true", help="Log notifications instead of sending them")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run the monitor until interrupted")
    subparsers.add_parser("check", help="Run a single availability check")
    summary = subparsers.add_parser("summary", help="Send the daily summary now")
    summary.add_argument("--date", type=_parse_date, default=None, help="Day to summarize (default: the day currently due)")
    subparsers.add_parser("health", help="Run health checks and print the report")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_monitor_settings()
    except ConfigurationError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return 2

    try:
        if args.command == "run":
            service = MonitorService(settings, build_orchestrator(settings, dry_run=args.dry_run))
            run_async_service(service.run, service_name=SERVICE_NAME, log_dir=settings.log_dir)
            return 0

        setup_logging(user_friendly=True)
        if args.command == "check":
            return asyncio.run(_check_once(settings, args.dry_run))
        if args.command == "summary":
            return asyncio.run(_summary_once(settings, args.dry_run, args.date))
        return asyncio.run(_health(settings))
    except ConfigurationError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())
