"""Locks for attendance writes and salary runs.

Two policies live here:

- Writes touching the same attendance day of one employee are serialized;
  among serialized writers the last one wins.
- A salary run for a period is rejected while another run for the same
  period is still running.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrdesk.calculators.types import SalaryPeriod
from hrdesk.exceptions import RunAlreadyInProgress, StoreUnavailable
from hrdesk.models import SalaryRun
from hrdesk.services.state_machine import SalaryRunStateMachine, SalaryRunStatus


class KeyedLocks:
    """One ``asyncio.Lock`` per key, created on demand and dropped when idle."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._holders: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


class RunRegistry:
    """Tracks the salary run status of each period (idle → running → completed).

    State lives in this process only; use ``SqlRunRegistry`` when more than
    one process can start runs.
    """

    def __init__(self) -> None:
        self._status: dict[tuple[int, int], SalaryRunStatus] = {}

    async def status(self, period: SalaryPeriod) -> SalaryRunStatus:
        return self._status.get(period.key, SalaryRunStatus.IDLE)

    async def begin(self, period: SalaryPeriod) -> None:
        """Mark the period running.

        Raises:
            RunAlreadyInProgress: a run for this period has not finished yet.
        """
        current = await self.status(period)
        if current == SalaryRunStatus.RUNNING:
            raise RunAlreadyInProgress(period.month, period.year)
        SalaryRunStateMachine.validate_transition(current, SalaryRunStatus.RUNNING)
        self._status[period.key] = SalaryRunStatus.RUNNING

    async def finish(self, period: SalaryPeriod) -> None:
        current = await self.status(period)
        SalaryRunStateMachine.validate_transition(current, SalaryRunStatus.COMPLETED)
        self._status[period.key] = SalaryRunStatus.COMPLETED


class SqlRunRegistry:
    """Run status kept in the ``salary_runs`` table.

    The API process and ``hrdesk-admin`` share the database, so a run started
    by one is seen by the other. Claiming a period is a single conditional
    UPDATE (or an INSERT guarded by the unique period key), so two processes
    can never both move the same period to ``running``.

    A ``running`` row older than ``stale_after`` seconds is treated as left
    behind by a crashed process and may be claimed again.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        stale_after: float = 3600.0,
    ):
        self.session_factory = session_factory
        self.stale_after = stale_after

    async def status(self, period: SalaryPeriod) -> SalaryRunStatus:
        try:
            async with self.session_factory() as session:
                value = await session.scalar(
                    select(SalaryRun.status).where(*self._period_filter(period))
                )
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read run status for {period}: {e}") from e
        return SalaryRunStatus(value) if value is not None else SalaryRunStatus.IDLE

    async def begin(self, period: SalaryPeriod) -> None:
        """Claim the period for this run.

        Raises:
            RunAlreadyInProgress: another run (in any process) holds the period.
            StoreUnavailable: the run table could not be read or written.
        """
        now = datetime.now(timezone.utc)
        stale_before = now - timedelta(seconds=self.stale_after)
        try:
            async with self.session_factory() as session:
                claimed = await session.execute(
                    update(SalaryRun)
                    .where(
                        *self._period_filter(period),
                        or_(
                            SalaryRun.status != SalaryRunStatus.RUNNING.value,
                            SalaryRun.started_at < stale_before,
                        ),
                    )
                    .values(
                        status=SalaryRunStatus.RUNNING.value,
                        started_at=now,
                        finished_at=None,
                    )
                )
                if not claimed.rowcount:
                    exists = await session.scalar(
                        select(SalaryRun.id).where(*self._period_filter(period))
                    )
                    if exists is not None:
                        raise RunAlreadyInProgress(period.month, period.year)
                    SalaryRunStateMachine.validate_transition(
                        SalaryRunStatus.IDLE, SalaryRunStatus.RUNNING
                    )
                    session.add(
                        SalaryRun(
                            month=period.month,
                            year=period.year,
                            status=SalaryRunStatus.RUNNING.value,
                            started_at=now,
                        )
                    )
                await session.commit()
        except IntegrityError as e:
            # Another process inserted the period first
            raise RunAlreadyInProgress(period.month, period.year) from e
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not start salary run for {period}: {e}") from e

    async def finish(self, period: SalaryPeriod) -> None:
        try:
            async with self.session_factory() as session:
                run = await session.scalar(
                    select(SalaryRun).where(*self._period_filter(period)).with_for_update()
                )
                current = SalaryRunStatus(run.status) if run else SalaryRunStatus.IDLE
                SalaryRunStateMachine.validate_transition(current, SalaryRunStatus.COMPLETED)
                run.status = SalaryRunStatus.COMPLETED.value
                run.finished_at = datetime.now(timezone.utc)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not finish salary run for {period}: {e}") from e

    @staticmethod
    def _period_filter(period: SalaryPeriod) -> tuple:
        return (SalaryRun.month == period.month, SalaryRun.year == period.year)
