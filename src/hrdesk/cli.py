"""Administrative command line interface.

Usage:
    hrdesk-admin init-db
    hrdesk-admin seed-demo
    hrdesk-admin calculate --month 1 --year 2026
    hrdesk-admin trigger-monthly [--now 2026-01-31T23:00:00]

``trigger-monthly`` is meant to be called daily by an external scheduler;
it only runs on the last day of the month.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Awaitable, Callable

from hrdesk.config import get_settings
from hrdesk.database import create_tables, dispose_db, init_db
from hrdesk.exceptions import HRDeskError
from hrdesk.logging_config import configure_logging
from hrdesk.notifications.channel import NullNotificationChannel
from hrdesk.seed import seed_demo
from hrdesk.services.caller import Caller
from hrdesk.services.locking_service import SqlRunRegistry
from hrdesk.services.monthly_trigger import trigger_monthly_run
from hrdesk.services.salary_service import RunResult, SalaryOrchestrator
from hrdesk.store.sql import SqlRecordStore


def parse_datetime(s: str) -> datetime:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s)


class AdminCli:
    """hrdesk administrative commands."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="hrdesk-admin",
            description="hrdesk administrative tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create database tables")
        subparsers.add_parser("seed-demo", help="Insert demo data into an empty database")

        calculate = subparsers.add_parser(
            "calculate",
            help="Run the salary calculation for a period",
        )
        calculate.add_argument("--month", type=int, required=True, help="Month (1-12)")
        calculate.add_argument("--year", type=int, required=True, help="Year")

        trigger = subparsers.add_parser(
            "trigger-monthly",
            help="Run the salary calculation if today is the last day of the month",
        )
        trigger.add_argument(
            "--now",
            type=parse_datetime,
            help="Override the current time (ISO format)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(get_settings().log_level)

        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
            "init-db": self._cmd_init_db,
            "seed-demo": self._cmd_seed_demo,
            "calculate": self._cmd_calculate,
            "trigger-monthly": self._cmd_trigger_monthly,
        }
        handler = handlers[parsed.command]
        try:
            return asyncio.run(self._with_db(handler, parsed))
        except HRDeskError as e:
            print(f"ERROR [{e.code}]: {e.message}", file=sys.stderr)
            return 1

    async def _with_db(
        self, handler: Callable[[argparse.Namespace], Awaitable[int]], args: argparse.Namespace
    ) -> int:
        engine, self.session_factory = init_db()
        try:
            await create_tables(engine)
            return await handler(args)
        finally:
            await dispose_db()

    def _orchestrator(self) -> SalaryOrchestrator:
        settings = get_settings()
        return SalaryOrchestrator(
            SqlRecordStore.provider(self.session_factory),
            NullNotificationChannel(),
            settings,
            registry=SqlRunRegistry(
                self.session_factory, stale_after=settings.salary_run_stale_seconds
            ),
        )

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create tables (done for every command; this one does nothing else)."""
        print("Database tables created.")
        return 0

    async def _cmd_seed_demo(self, args: argparse.Namespace) -> int:
        async with self.session_factory() as session:
            inserted = await seed_demo(session)
        print("Demo data inserted." if inserted else "Database not empty; nothing inserted.")
        return 0

    async def _cmd_calculate(self, args: argparse.Namespace) -> int:
        result = await self._orchestrator().run_monthly_calculation(
            args.month, args.year, caller=Caller.system()
        )
        return self._report(result)

    async def _cmd_trigger_monthly(self, args: argparse.Namespace) -> int:
        now = args.now or datetime.now()
        result = await trigger_monthly_run(self._orchestrator(), now)
        if result is None:
            print(f"No salary run due on {now.date().isoformat()}.")
            return 0
        return self._report(result)

    def _report(self, result: RunResult) -> int:
        print(json.dumps(result.to_dict(), indent=2))
        return 1 if result.partial_failure else 0


def main() -> int:
    """CLI entry point."""
    cli = AdminCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
