"""Attendance service - check-in, check-out and manager edits.

Writes that touch the same (employee, day) are serialized through
``KeyedLocks``; among serialized writers the last one wins. Each write
commits inside the lock, then is announced to the salary core and to
connected clients.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.calculators.types import AttendanceStatus
from hrdesk.config import Settings, get_settings
from hrdesk.exceptions import (
    AttendanceConflict,
    EmployeeNotFound,
    InvalidInput,
    RecordNotFound,
    StoreUnavailable,
)
from hrdesk.models import AttendanceRecord, Employee
from hrdesk.notifications.channel import (
    ATTENDANCE_UPDATE,
    ATTENDANCE_UPDATED,
    NotificationChannel,
)
from hrdesk.notifications.events import AttendanceChanged, EventMetadata
from hrdesk.services.caller import Caller
from hrdesk.services.locking_service import KeyedLocks

logger = logging.getLogger(__name__)

NO_CHECK_IN_WARNING = (
    "No check-in record found. Created a new record with both check-in and check-out."
)

EDITABLE_FIELDS = frozenset({"status", "overtime_hours", "check_in_time", "check_out_time"})


@dataclass(frozen=True)
class CheckOutResult:
    """Check-out outcome; ``warning`` is set when the no-check-in fallback ran."""

    record: AttendanceRecord
    warning: str | None = None


def _minutes(moment: datetime) -> time:
    """Time of day truncated to the minute (attendance is kept as HH:MM)."""
    return moment.time().replace(second=0, microsecond=0)


def _worked_hours(check_in: time, check_out: time) -> float:
    start = check_in.hour * 60 + check_in.minute
    end = check_out.hour * 60 + check_out.minute
    return (end - start) / 60


class AttendanceService:
    """Attendance writes for one request.

    ``clock`` returns the current local time; tests inject a fixed one.
    """

    def __init__(
        self,
        session: AsyncSession,
        channel: NotificationChannel,
        locks: KeyedLocks,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.channel = channel
        self.locks = locks
        self.settings = settings or get_settings()
        self.clock = clock

    async def check_in(self, caller: Caller, now: datetime | None = None) -> AttendanceRecord:
        """Record the caller's check-in for today.

        Status is ``late`` when the check-in is after the workday start.

        Raises:
            AttendanceConflict: already checked in today.
        """
        now = now or self.clock()
        today = now.date()
        at = _minutes(now)
        status = (
            AttendanceStatus.LATE if at > self.settings.workday_start else AttendanceStatus.PRESENT
        )

        async with self.locks.hold((caller.id, today)):
            await self._require_employee(caller.id)
            record = await self._find_for_day(caller.id, today)
            if record is not None and record.check_in_time is not None:
                raise AttendanceConflict(
                    "You have already checked in today",
                    employee_id=caller.id,
                    date=today.isoformat(),
                )

            if record is None:
                record = AttendanceRecord(
                    employee_id=caller.id,
                    date=today,
                    status=status.value,
                    overtime_hours=0,
                    check_in_time=at,
                )
                self.session.add(record)
            else:
                record.check_in_time = at
                record.status = status.value
            await self._commit()

        logger.info("Employee %s checked in at %s (%s)", caller.id, at, status.value)
        await self._announce(record, caller)
        return record

    async def check_out(self, caller: Caller, now: datetime | None = None) -> CheckOutResult:
        """Record the caller's check-out for today.

        With no record for today a ``present`` record with check-in equal to
        check-out is written. A record without a check-in only gets its
        check-out time; its status and overtime stay as recorded. Both cases
        carry a warning.

        Raises:
            AttendanceConflict: already checked out today.
        """
        now = now or self.clock()
        today = now.date()
        at = _minutes(now)
        warning = None

        async with self.locks.hold((caller.id, today)):
            await self._require_employee(caller.id)
            record = await self._find_for_day(caller.id, today)
            if record is not None and record.check_out_time is not None:
                raise AttendanceConflict(
                    "You have already checked out today",
                    employee_id=caller.id,
                    date=today.isoformat(),
                )

            if record is None:
                warning = NO_CHECK_IN_WARNING
                record = AttendanceRecord(
                    employee_id=caller.id,
                    date=today,
                    status=AttendanceStatus.PRESENT.value,
                    overtime_hours=0,
                    check_in_time=at,
                    check_out_time=at,
                )
                self.session.add(record)
            elif record.check_in_time is None:
                # Keep the recorded status (e.g. a manager-entered absence)
                warning = NO_CHECK_IN_WARNING
                record.check_out_time = at
            else:
                record.check_out_time = at
                worked = _worked_hours(record.check_in_time, at)
                overtime = max(0, int(worked - self.settings.standard_work_hours))
                record.overtime_hours = max(overtime, record.overtime_hours or 0)
            await self._commit()

        if warning:
            logger.warning("Employee %s checked out without check-in on %s", caller.id, today)
        else:
            logger.info("Employee %s checked out at %s", caller.id, at)
        await self._announce(record, caller)
        return CheckOutResult(record=record, warning=warning)

    async def create_record(
        self,
        caller: Caller,
        employee_id: int,
        day: date,
        status: str,
        overtime_hours: int = 0,
        check_in_time: time | None = None,
        check_out_time: time | None = None,
    ) -> AttendanceRecord:
        """Manager entry of an attendance row."""
        caller.require_manager()
        self._validate(status=status, overtime_hours=overtime_hours)

        async with self.locks.hold((employee_id, day)):
            await self._require_employee(employee_id)
            record = AttendanceRecord(
                employee_id=employee_id,
                date=day,
                status=AttendanceStatus(status).value,
                overtime_hours=overtime_hours,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
            )
            self.session.add(record)
            await self._commit()

        await self._announce(record, caller)
        return record

    async def update_record(
        self,
        caller: Caller,
        record_id: int,
        changes: dict[str, Any],
    ) -> AttendanceRecord:
        """Manager edit of status, overtime or check times. The day is fixed.

        Raises:
            RecordNotFound: unknown record id.
            InvalidInput: negative overtime or unknown status/field.
        """
        caller.require_manager()
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Cannot edit attendance fields: {', '.join(sorted(unknown))}")
        self._validate(
            status=changes.get("status"),
            overtime_hours=changes.get("overtime_hours"),
        )

        record = await self._get(record_id)
        async with self.locks.hold((record.employee_id, record.date)):
            # Re-read under the lock so a concurrent check-out is not lost
            record = await self._get(record_id, refresh=True)
            for name, value in changes.items():
                if name == "status":
                    value = AttendanceStatus(value).value
                setattr(record, name, value)
            await self._commit()

        logger.info("Attendance %s edited by %s: %s", record_id, caller, sorted(changes))
        await self._announce(record, caller)
        return record

    async def list_all(self) -> list[AttendanceRecord]:
        return await self._list(select(AttendanceRecord))

    async def list_for_employee(self, employee_id: int) -> list[AttendanceRecord]:
        return await self._list(
            select(AttendanceRecord).where(AttendanceRecord.employee_id == employee_id)
        )

    async def _list(self, stmt) -> list[AttendanceRecord]:
        try:
            result = await self.session.execute(
                stmt.order_by(AttendanceRecord.date.desc(), AttendanceRecord.id)
            )
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read attendance: {e}") from e
        return list(result.scalars().all())

    async def _get(self, record_id: int, refresh: bool = False) -> AttendanceRecord:
        try:
            record = await self.session.get(AttendanceRecord, record_id, populate_existing=refresh)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read attendance {record_id}: {e}") from e
        if record is None:
            raise RecordNotFound("Attendance record", record_id)
        return record

    async def _find_for_day(self, employee_id: int, day: date) -> AttendanceRecord | None:
        stmt = (
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id, AttendanceRecord.date == day)
            .order_by(AttendanceRecord.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read attendance: {e}") from e
        return result.scalar_one_or_none()

    async def _require_employee(self, employee_id: int) -> None:
        try:
            employee = await self.session.get(Employee, employee_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read employee {employee_id}: {e}") from e
        if employee is None:
            raise EmployeeNotFound(employee_id)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable(f"Could not save attendance: {e}") from e

    @staticmethod
    def _validate(status: str | None = None, overtime_hours: int | None = None) -> None:
        if overtime_hours is not None and overtime_hours < 0:
            raise InvalidInput(f"Overtime hours must not be negative (got {overtime_hours})")
        if status is not None and status not in {s.value for s in AttendanceStatus}:
            raise InvalidInput(f"Unknown attendance status: {status}")

    async def _announce(self, record: AttendanceRecord, caller: Caller) -> None:
        await self.channel.publish(
            AttendanceChanged(
                metadata=EventMetadata.create(actor_id=caller.id, actor_role=caller.role),
                employee_id=record.employee_id,
                attendance_id=record.id,
                record_date=record.date,
            )
        )
        payload = record.to_dict()
        self.channel.notify_employee(record.employee_id, ATTENDANCE_UPDATED, payload)
        self.channel.broadcast(ATTENDANCE_UPDATE, payload)
