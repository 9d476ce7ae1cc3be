"""Monthly trigger - fires the salary run on the last day of each month."""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime

from hrdesk.calculators.types import SalaryPeriod
from hrdesk.exceptions import RunAlreadyInProgress
from hrdesk.services.caller import Caller
from hrdesk.services.salary_service import RunResult, SalaryOrchestrator

logger = logging.getLogger(__name__)


def is_last_day_of_month(day: date | datetime) -> bool:
    return day.day == calendar.monthrange(day.year, day.month)[1]


def due_period(now: date | datetime) -> SalaryPeriod | None:
    """Period to run at ``now``, or None when today is not the last day."""
    if not is_last_day_of_month(now):
        return None
    return SalaryPeriod(month=now.month, year=now.year)


async def trigger_monthly_run(
    orchestrator: SalaryOrchestrator,
    now: date | datetime,
) -> RunResult | None:
    """Start the salary run for the current month when ``now`` is its last day.

    Returns None when nothing ran (not the last day, or a run for the period
    is already in progress).
    """
    period = due_period(now)
    if period is None:
        logger.debug("No salary run due on %s", now)
        return None

    logger.info("Month end reached; starting salary run for %s", period)
    try:
        return await orchestrator.run_monthly_calculation(
            period.month, period.year, caller=Caller.system()
        )
    except RunAlreadyInProgress:
        logger.warning("Salary run for %s already in progress; skipping trigger", period)
        return None
