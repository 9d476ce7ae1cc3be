"""SQLAlchemy implementation of the record store."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrdesk.calculators.types import LeaveStatus, SalaryBreakdown, round_to_cents
from hrdesk.exceptions import StoreUnavailable
from hrdesk.models import AttendanceRecord, Employee, LeaveRequest, SalaryRecord
from hrdesk.store.base import StoreProvider

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """Record store backed by an ``AsyncSession``.

    Any ``SQLAlchemyError`` surfaces as ``StoreUnavailable``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @classmethod
    def provider(cls, session_factory: async_sessionmaker[AsyncSession]) -> StoreProvider:
        """Build a provider that opens one session per unit of work."""

        @asynccontextmanager
        async def open_store() -> AsyncGenerator[SqlRecordStore, None]:
            async with session_factory() as session:
                try:
                    yield cls(session)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise StoreUnavailable(f"Record store error: {e}") from e
                except Exception:
                    await session.rollback()
                    raise

        return open_store

    async def list_employee_ids(self) -> list[int]:
        try:
            result = await self.session.execute(select(Employee.id))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not list employees: {e}") from e
        return list(result.scalars().all())

    async def get_employee(self, employee_id: int) -> Employee | None:
        try:
            return await self.session.get(Employee, employee_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not load employee {employee_id}: {e}") from e

    async def list_attendance(
        self, employee_id: int, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        try:
            result = await self.session.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.date >= start,
                    AttendanceRecord.date <= end,
                )
            )
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                f"Could not load attendance for employee {employee_id}: {e}"
            ) from e
        return result.scalars().all()

    async def list_approved_leaves(
        self, employee_id: int, start: date, end: date
    ) -> Sequence[LeaveRequest]:
        try:
            result = await self.session.execute(
                select(LeaveRequest).where(
                    LeaveRequest.employee_id == employee_id,
                    LeaveRequest.status == LeaveStatus.APPROVED.value,
                    LeaveRequest.start_date <= end,
                    LeaveRequest.end_date >= start,
                )
            )
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                f"Could not load leaves for employee {employee_id}: {e}"
            ) from e
        return result.scalars().all()

    async def save_salary_record(self, breakdown: SalaryBreakdown) -> None:
        values = {
            "base_salary": round_to_cents(breakdown.base_salary),
            "overtime_pay": round_to_cents(breakdown.overtime_pay),
            "deductions": round_to_cents(breakdown.deductions),
            "final_salary": round_to_cents(breakdown.final_salary),
            "calculation_date": datetime.now(timezone.utc),
        }
        try:
            result = await self.session.execute(
                select(SalaryRecord).where(
                    SalaryRecord.employee_id == breakdown.employee_id,
                    SalaryRecord.month == breakdown.month,
                    SalaryRecord.year == breakdown.year,
                )
            )
            record = result.scalar_one_or_none()
            if record is None:
                record = SalaryRecord(
                    employee_id=breakdown.employee_id,
                    month=breakdown.month,
                    year=breakdown.year,
                    **values,
                )
                self.session.add(record)
            else:
                for key, value in values.items():
                    setattr(record, key, value)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                f"Could not save salary record for employee {breakdown.employee_id}: {e}"
            ) from e
        logger.debug(
            "Saved salary record employee=%s period=%s-%s",
            breakdown.employee_id,
            breakdown.year,
            breakdown.month,
        )
