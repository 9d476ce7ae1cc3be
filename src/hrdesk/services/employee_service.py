"""Employee records: create, update and cascading delete."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.exceptions import EmployeeNotFound, InvalidInput, StoreUnavailable
from hrdesk.models import (
    Alert,
    AttendanceRecord,
    Employee,
    EmployeeRole,
    LeaveRequest,
    PerformanceReview,
    SalaryRecord,
)
from hrdesk.notifications.channel import PROFILE_UPDATED, REFRESH_DATA, NotificationChannel
from hrdesk.services.caller import Caller

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"name", "email", "role", "joining_date", "base_salary", "password_hash"}
)

# Rows owned by an employee, removed before the employee itself
_DEPENDENTS = (AttendanceRecord, LeaveRequest, PerformanceReview, SalaryRecord)


class EmployeeService:
    def __init__(self, session: AsyncSession, channel: NotificationChannel):
        self.session = session
        self.channel = channel

    async def list_employees(self) -> list[Employee]:
        try:
            result = await self.session.execute(select(Employee).order_by(Employee.id))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not list employees: {e}") from e
        return list(result.scalars().all())

    async def get(self, employee_id: int) -> Employee:
        try:
            employee = await self.session.get(Employee, employee_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read employee {employee_id}: {e}") from e
        if employee is None:
            raise EmployeeNotFound(employee_id)
        return employee

    async def create(self, caller: Caller, **fields: Any) -> Employee:
        caller.require_manager()
        self._validate(fields)
        employee = Employee(**fields)
        self.session.add(employee)
        await self._commit(f"Email already in use: {fields.get('email')}")

        logger.info("Employee %s created by %s", employee.id, caller)
        self.channel.broadcast(REFRESH_DATA, "employees")
        return employee

    async def update(self, caller: Caller, employee_id: int, changes: dict[str, Any]) -> Employee:
        caller.require_manager()
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Cannot edit employee fields: {', '.join(sorted(unknown))}")
        self._validate(changes)

        employee = await self.get(employee_id)
        for name, value in changes.items():
            setattr(employee, name, value)
        await self._commit(f"Email already in use: {changes.get('email')}")

        logger.info("Employee %s updated by %s", employee_id, caller)
        self.channel.broadcast(REFRESH_DATA, "employees")
        self.channel.notify_employee(employee_id, PROFILE_UPDATED, employee.to_dict())
        return employee

    async def delete(self, caller: Caller, employee_id: int) -> None:
        """Delete an employee with their attendance, leaves, reviews,
        salary records and personal alerts."""
        caller.require_manager()
        await self.get(employee_id)
        try:
            for model in _DEPENDENTS:
                await self.session.execute(delete(model).where(model.employee_id == employee_id))
            await self.session.execute(delete(Alert).where(Alert.employee_id == str(employee_id)))
            await self.session.execute(delete(Employee).where(Employee.id == employee_id))
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable(f"Could not delete employee {employee_id}: {e}") from e
        await self._commit()

        logger.info("Employee %s deleted by %s", employee_id, caller)
        self.channel.broadcast(REFRESH_DATA, "employees")

    @staticmethod
    def _validate(fields: dict[str, Any]) -> None:
        salary = fields.get("base_salary")
        if salary is not None and salary < 0:
            raise InvalidInput(f"Base salary must not be negative (got {salary})")
        role = fields.get("role")
        if role is not None and role not in {r.value for r in EmployeeRole}:
            raise InvalidInput(f"Unknown role: {role}")

    async def _commit(self, conflict_message: str = "Conflicting employee data") -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise InvalidInput(conflict_message) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable(f"Could not save employee: {e}") from e
