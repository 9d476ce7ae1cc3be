"""Tests for the month-end trigger contract."""

import asyncio
from datetime import date, datetime

import pytest

from hrdesk.calculators.types import SalaryPeriod
from hrdesk.notifications.channel import SALARY_CALCULATION_COMPLETE
from hrdesk.services.monthly_trigger import due_period, is_last_day_of_month, trigger_monthly_run
from hrdesk.services.salary_service import SalaryOrchestrator

from .conftest import make_settings


class TestDuePeriod:
    @pytest.mark.parametrize(
        "day",
        [date(2026, 1, 31), date(2024, 2, 29), date(2026, 2, 28), date(2026, 4, 30)],
    )
    def test_last_days(self, day):
        assert is_last_day_of_month(day)
        assert due_period(day) == SalaryPeriod(day.month, day.year)

    @pytest.mark.parametrize("day", [date(2026, 1, 30), date(2024, 2, 28), date(2026, 3, 1)])
    def test_other_days(self, day):
        assert not is_last_day_of_month(day)
        assert due_period(day) is None

    def test_accepts_datetimes(self):
        assert due_period(datetime(2026, 12, 31, 23, 59)) == SalaryPeriod(12, 2026)


class TestTriggerMonthlyRun:
    async def test_runs_on_the_last_day(self, fake_store, channel):
        fake_store.add_employee(1, "3000")
        orchestrator = SalaryOrchestrator(fake_store.provider(), channel, make_settings())

        result = await trigger_monthly_run(orchestrator, datetime(2026, 1, 31, 23, 0))

        assert result is not None
        assert (result.month, result.year) == (1, 2026)
        assert result.processed == [1]
        assert channel.broadcasts(SALARY_CALCULATION_COMPLETE)[0].payload == {
            "month": 1,
            "year": 2026,
        }

    async def test_does_nothing_mid_month(self, fake_store, channel):
        fake_store.add_employee(1, "3000")
        orchestrator = SalaryOrchestrator(fake_store.provider(), channel, make_settings())

        assert await trigger_monthly_run(orchestrator, datetime(2026, 1, 15)) is None
        assert channel.sent == []

    async def test_skips_when_run_in_progress(self, fake_store, channel):
        fake_store.add_employee(1, "3000")
        fake_store.delay_for[1] = 0.1
        orchestrator = SalaryOrchestrator(fake_store.provider(), channel, make_settings())
        now = datetime(2026, 1, 31, 23, 0)

        running = asyncio.create_task(trigger_monthly_run(orchestrator, now))
        await asyncio.sleep(0.01)
        skipped = await trigger_monthly_run(orchestrator, now)
        finished = await running

        assert skipped is None
        assert finished is not None and finished.processed == [1]
