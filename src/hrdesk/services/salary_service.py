"""Salary orchestrator - drives the engine over employees and periods.

Operations:
- run_monthly_calculation: compute, persist and push every employee's
  breakdown for a period; per-employee failures are collected, never raised
- compute_salary_on_demand: compute one employee's breakdown for display
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from hrdesk.calculators.engine import SalaryEngine
from hrdesk.calculators.types import LeaveInput, LeaveLike, SalaryBreakdown, SalaryPeriod
from hrdesk.config import Settings, get_settings
from hrdesk.exceptions import EmployeeNotFound, HRDeskError
from hrdesk.notifications.channel import (
    SALARY_CALCULATION_COMPLETE,
    SALARY_UPDATED,
    NotificationChannel,
)
from hrdesk.notifications.events import AttendanceChanged, DomainEvent, LeaveChanged
from hrdesk.services.caller import Caller
from hrdesk.services.locking_service import RunRegistry, SqlRunRegistry
from hrdesk.services.state_machine import SalaryRunStatus
from hrdesk.store.base import EmployeeLike, RecordStore, StoreProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailedEmployee:
    """One employee the run could not process."""

    employee_id: int
    reason: str


@dataclass
class RunResult:
    """Outcome of one salary run.

    A non-empty ``failed`` list is a partial run failure; the run itself
    still completed.
    """

    month: int
    year: int
    processed: list[int] = field(default_factory=list)
    failed: list[FailedEmployee] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "processed": list(self.processed),
            "failed": [
                {"employee_id": f.employee_id, "reason": f.reason} for f in self.failed
            ],
        }


@dataclass
class _Outcome:
    employee_id: int
    breakdown: SalaryBreakdown | None = None
    reason: str | None = None


class SalaryOrchestrator:
    """Runs the salary engine against the record store.

    Each employee is computed in its own unit of work (its own snapshot),
    concurrently up to ``salary_run_concurrency`` and bounded by
    ``employee_timeout_seconds``. Attendance or leave changes that arrive
    while an employee's computation is in flight trigger a recompute, up to
    ``max_recompute_attempts`` attempts in total.
    """

    def __init__(
        self,
        store_provider: StoreProvider,
        channel: NotificationChannel,
        settings: Settings | None = None,
        engine: SalaryEngine | None = None,
        registry: RunRegistry | SqlRunRegistry | None = None,
    ):
        self.store_provider = store_provider
        self.channel = channel
        self.settings = settings or get_settings()
        self.engine = engine or SalaryEngine()
        self.registry = registry or RunRegistry()
        # (employee_id, month, year) -> changed since the attempt started
        self._in_flight: dict[tuple[int, int, int], bool] = {}
        channel.subscribe([AttendanceChanged, LeaveChanged], self._on_input_changed)

    def close(self) -> None:
        """Stop listening to change events."""
        self.channel.unsubscribe(self._on_input_changed)

    async def run_status(self, month: int, year: int) -> SalaryRunStatus:
        return await self.registry.status(SalaryPeriod(month, year))

    async def run_monthly_calculation(
        self,
        month: int,
        year: int,
        caller: Caller | None = None,
    ) -> RunResult:
        """Compute, persist and push every employee's salary for a period.

        Raises:
            InvalidInput: month/year out of range.
            RunAlreadyInProgress: a run for this period is still running.
            StoreUnavailable: the employee list itself could not be read.
        """
        period = SalaryPeriod(month, year)
        await self.registry.begin(period)
        actor = caller or Caller.system()
        logger.info("Salary run %s started by %s", period, actor)

        try:
            async with self.store_provider() as store:
                employee_ids = await store.list_employee_ids()

            semaphore = asyncio.Semaphore(max(1, self.settings.salary_run_concurrency))
            # gather is the barrier: every attempt resolves before completion
            outcomes = await asyncio.gather(
                *(self._process_employee(eid, period, semaphore) for eid in employee_ids)
            )
        finally:
            await self.registry.finish(period)

        result = RunResult(month=month, year=year)
        for outcome in outcomes:
            if outcome.breakdown is not None:
                result.processed.append(outcome.employee_id)
            else:
                result.failed.append(
                    FailedEmployee(outcome.employee_id, outcome.reason or "unknown error")
                )

        self.channel.broadcast(SALARY_CALCULATION_COMPLETE, {"month": month, "year": year})
        logger.info(
            "Salary run %s completed: %d processed, %d failed",
            period,
            len(result.processed),
            len(result.failed),
        )
        return result

    async def compute_salary_on_demand(
        self,
        employee_id: int,
        month: int,
        year: int,
        caller: Caller | None = None,
    ) -> SalaryBreakdown:
        """Compute one employee's breakdown without persisting or notifying.

        Raises:
            EmployeeNotFound: the id does not resolve.
            InvalidInput: raised by the engine, unwrapped.
            StoreUnavailable: the record store failed.
        """
        period = SalaryPeriod(month, year)
        async with self.store_provider() as store:
            employee = await store.get_employee(employee_id)
            if employee is None:
                raise EmployeeNotFound(employee_id)
            breakdown = await self._compute(store, employee, period)
        logger.debug(
            "On-demand salary for employee %s period %s requested by %s",
            employee_id,
            period,
            caller or "anonymous",
        )
        return breakdown

    async def _process_employee(
        self,
        employee_id: int,
        period: SalaryPeriod,
        semaphore: asyncio.Semaphore,
    ) -> _Outcome:
        """One employee's attempt; never raises so the run can continue."""
        timeout = self.settings.employee_timeout_seconds
        async with semaphore:
            try:
                breakdown = await asyncio.wait_for(
                    self._compute_and_save(employee_id, period), timeout=timeout
                )
            except asyncio.TimeoutError:
                reason = f"Timed out after {timeout:g}s"
            except HRDeskError as e:
                reason = f"{e.code}: {e.message}"
            except Exception as e:
                logger.exception("Unexpected error computing salary for employee %s", employee_id)
                reason = f"Unexpected error: {e}"
            else:
                self.channel.notify_employee(employee_id, SALARY_UPDATED, breakdown.to_payload())
                return _Outcome(employee_id, breakdown=breakdown)

        logger.warning(
            "Salary for employee %s in %s failed: %s", employee_id, period, reason
        )
        return _Outcome(employee_id, reason=reason)

    async def _compute_and_save(self, employee_id: int, period: SalaryPeriod) -> SalaryBreakdown:
        key = (employee_id, period.month, period.year)
        attempts = max(1, self.settings.max_recompute_attempts)

        for attempt in range(1, attempts + 1):
            self._in_flight[key] = False
            try:
                async with self.store_provider() as store:
                    employee = await store.get_employee(employee_id)
                    if employee is None:
                        # Deleted after the employee list was read
                        raise EmployeeNotFound(employee_id)
                    breakdown = await self._compute(store, employee, period)
                    if not self._in_flight[key] or attempt == attempts:
                        await store.save_salary_record(breakdown)
                # Checked again after commit: an edit may land while saving
                if self._in_flight[key] and attempt < attempts:
                    logger.info(
                        "Inputs of employee %s changed during computation; recomputing",
                        employee_id,
                    )
                    continue
                return breakdown
            finally:
                self._in_flight.pop(key, None)

        raise AssertionError("unreachable")  # pragma: no cover

    async def _compute(
        self,
        store: RecordStore,
        employee: EmployeeLike,
        period: SalaryPeriod,
    ) -> SalaryBreakdown:
        attendance = await store.list_attendance(employee.id, period.start, period.end)
        leaves = await store.list_approved_leaves(employee.id, period.start, period.end)
        return self.engine.compute(
            employee,
            attendance,
            clip_leaves_to_period(leaves, period),
            period,
        )

    async def _on_input_changed(self, event: DomainEvent) -> None:
        for key in list(self._in_flight):
            employee_id, month, year = key
            if event.affects(employee_id, SalaryPeriod(month, year)):
                self._in_flight[key] = True


def clip_leaves_to_period(
    leaves: Sequence[LeaveLike], period: SalaryPeriod
) -> list[LeaveInput]:
    """Restrict each leave's range to the period.

    Malformed ranges (end before start) are passed through unchanged so the
    engine rejects them.
    """
    clipped: list[LeaveInput] = []
    for leave in leaves:
        start, end = leave.start_date, leave.end_date
        if end >= start:
            start, end = period.clip(start, end)
        clipped.append(
            LeaveInput(
                leave_type=leave.leave_type,
                start_date=start,
                end_date=end,
                status=leave.status,
            )
        )
    return clipped
