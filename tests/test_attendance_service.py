"""Tests for AttendanceService check-in/out and manager edits."""

import asyncio
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from hrdesk.calculators.engine import compute_salary
from hrdesk.exceptions import (
    AttendanceConflict,
    EmployeeNotFound,
    InvalidInput,
    PermissionDenied,
    RecordNotFound,
)
from hrdesk.models import AttendanceRecord
from hrdesk.notifications.channel import ATTENDANCE_UPDATE, ATTENDANCE_UPDATED
from hrdesk.notifications.events import AttendanceChanged
from hrdesk.services.attendance_service import NO_CHECK_IN_WARNING, AttendanceService
from hrdesk.services.caller import Caller

from .conftest import FakeEmployee

JANE = Caller(id=2, role="employee", email="employee@example.com")
MORNING = datetime(2026, 1, 12, 8, 45, 30)


@pytest.fixture
def service(session, channel, locks, settings) -> AttendanceService:
    return AttendanceService(session, channel, locks, settings)


async def count_records(session_factory, employee_id: int) -> int:
    async with session_factory() as s:
        return await s.scalar(
            select(func.count())
            .select_from(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
        )


class TestCheckIn:
    async def test_on_time_is_present(self, service, employees, channel):
        record = await service.check_in(JANE, now=MORNING)

        assert record.status == "present"
        assert record.check_in_time == time(8, 45)
        assert record.date == date(2026, 1, 12)
        assert len(channel.to_employee(2, ATTENDANCE_UPDATED)) == 1
        assert len(channel.broadcasts(ATTENDANCE_UPDATE)) == 1

    async def test_exactly_nine_is_present(self, service, employees):
        record = await service.check_in(JANE, now=datetime(2026, 1, 12, 9, 0, 59))

        assert record.status == "present"

    async def test_after_nine_is_late(self, service, employees):
        record = await service.check_in(JANE, now=datetime(2026, 1, 12, 9, 1))

        assert record.status == "late"

    async def test_second_check_in_is_rejected(self, service, employees, session_factory):
        await service.check_in(JANE, now=MORNING)

        with pytest.raises(AttendanceConflict):
            await service.check_in(JANE, now=datetime(2026, 1, 12, 10, 0))

        assert await count_records(session_factory, 2) == 1

    async def test_fills_in_existing_record_without_check_in(self, service, employees, session):
        session.add(AttendanceRecord(employee_id=2, date=date(2026, 1, 12), status="absent"))
        await session.commit()

        record = await service.check_in(JANE, now=datetime(2026, 1, 12, 9, 30))

        assert record.status == "late"
        assert record.check_in_time == time(9, 30)

    async def test_unknown_employee(self, service, employees):
        with pytest.raises(EmployeeNotFound):
            await service.check_in(Caller(id=404, role="employee"), now=MORNING)

    async def test_publishes_attendance_changed(self, service, employees, channel):
        seen = []

        async def handler(event):
            seen.append(event)

        channel.subscribe(AttendanceChanged, handler)

        record = await service.check_in(JANE, now=MORNING)

        assert len(seen) == 1
        assert seen[0].employee_id == 2
        assert seen[0].attendance_id == record.id
        assert seen[0].metadata.actor_id == 2


class TestCheckOut:
    async def test_without_check_in_creates_one_record_with_warning(
        self, service, employees, session_factory
    ):
        now = datetime(2026, 1, 12, 17, 5)

        result = await service.check_out(JANE, now=now)

        assert result.warning == NO_CHECK_IN_WARNING
        assert result.record.check_in_time == result.record.check_out_time == time(17, 5)
        assert result.record.status == "present"
        assert await count_records(session_factory, 2) == 1

    async def test_recorded_absence_survives_check_out(self, service, employees, session):
        session.add(
            AttendanceRecord(employee_id=2, date=date(2026, 1, 12), status="absent", overtime_hours=1)
        )
        await session.commit()

        result = await service.check_out(JANE, now=datetime(2026, 1, 12, 17, 0))

        assert result.warning == NO_CHECK_IN_WARNING
        assert result.record.status == "absent"
        assert result.record.check_in_time is None
        assert result.record.check_out_time == time(17, 0)
        assert result.record.overtime_hours == 1
        jane = FakeEmployee(id=2, base_salary=Decimal("3000"))
        breakdown = compute_salary(jane, [result.record], [])
        assert breakdown.absence_deduction == Decimal(100)

    async def test_regular_day_has_no_overtime(self, service, employees):
        await service.check_in(JANE, now=MORNING)

        result = await service.check_out(JANE, now=datetime(2026, 1, 12, 17, 0))

        assert result.warning is None
        assert result.record.check_out_time == time(17, 0)
        assert result.record.overtime_hours == 0

    async def test_overtime_is_whole_hours_past_eight(self, service, employees):
        await service.check_in(JANE, now=datetime(2026, 1, 12, 8, 0))

        result = await service.check_out(JANE, now=datetime(2026, 1, 12, 19, 45))

        assert result.record.overtime_hours == 3

    async def test_overtime_keeps_larger_existing_value(self, service, employees, session):
        session.add(
            AttendanceRecord(
                employee_id=2,
                date=date(2026, 1, 12),
                status="present",
                overtime_hours=5,
                check_in_time=time(8, 0),
            )
        )
        await session.commit()

        result = await service.check_out(JANE, now=datetime(2026, 1, 12, 17, 30))

        assert result.record.overtime_hours == 5

    async def test_second_check_out_is_rejected(self, service, employees):
        await service.check_in(JANE, now=MORNING)
        await service.check_out(JANE, now=datetime(2026, 1, 12, 17, 0))

        with pytest.raises(AttendanceConflict):
            await service.check_out(JANE, now=datetime(2026, 1, 12, 18, 0))


class TestManagerEdits:
    async def test_create_record(self, service, employees, manager, channel):
        record = await service.create_record(
            manager, employee_id=3, day=date(2026, 1, 5), status="absent"
        )

        assert record.id is not None
        assert record.overtime_hours == 0
        assert channel.to_employee(3, ATTENDANCE_UPDATED)[0].payload["status"] == "absent"

    async def test_create_requires_manager(self, service, employees):
        with pytest.raises(PermissionDenied):
            await service.create_record(JANE, employee_id=2, day=date(2026, 1, 5), status="present")

    async def test_negative_overtime_is_invalid(self, service, employees, manager):
        with pytest.raises(InvalidInput):
            await service.create_record(
                manager, employee_id=3, day=date(2026, 1, 5), status="present", overtime_hours=-1
            )

    async def test_update_record(self, service, employees, manager):
        record = await service.create_record(
            manager, employee_id=3, day=date(2026, 1, 5), status="present"
        )

        updated = await service.update_record(manager, record.id, {"overtime_hours": 2, "status": "late"})

        assert updated.overtime_hours == 2
        assert updated.status == "late"

    async def test_update_cannot_move_the_day(self, service, employees, manager):
        record = await service.create_record(
            manager, employee_id=3, day=date(2026, 1, 5), status="present"
        )

        with pytest.raises(InvalidInput):
            await service.update_record(manager, record.id, {"date": date(2026, 1, 6)})

    async def test_update_unknown_record(self, service, employees, manager):
        with pytest.raises(RecordNotFound):
            await service.update_record(manager, 999, {"status": "present"})


class TestConcurrentWrites:
    async def test_edit_and_check_out_on_same_day_are_serialized(
        self, session_factory, employees, channel, locks, settings, manager
    ):
        """A manager edit racing a check-out keeps both changes."""
        async with session_factory() as s:
            setup = AttendanceService(s, channel, locks, settings)
            record = await setup.check_in(JANE, now=datetime(2026, 1, 12, 8, 0))

        async def check_out():
            async with session_factory() as s:
                return await AttendanceService(s, channel, locks, settings).check_out(
                    JANE, now=datetime(2026, 1, 12, 17, 0)
                )

        async def edit():
            async with session_factory() as s:
                return await AttendanceService(s, channel, locks, settings).update_record(
                    manager, record.id, {"overtime_hours": 4}
                )

        await asyncio.gather(check_out(), edit())

        async with session_factory() as s:
            final = await s.get(AttendanceRecord, record.id)
        assert final.check_out_time == time(17, 0)
        assert final.overtime_hours == 4
