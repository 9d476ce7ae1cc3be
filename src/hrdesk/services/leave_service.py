"""Leave requests and manager decisions."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.calculators.types import LeaveStatus, LeaveType
from hrdesk.exceptions import EmployeeNotFound, InvalidInput, RecordNotFound, StoreUnavailable
from hrdesk.models import Employee, LeaveRequest
from hrdesk.notifications.channel import LEAVE_UPDATED, REFRESH_DATA, NotificationChannel
from hrdesk.notifications.events import EventMetadata, LeaveChanged
from hrdesk.services.caller import Caller
from hrdesk.services.state_machine import LeaveStateMachine

logger = logging.getLogger(__name__)


class LeaveService:
    """Leave workflow: pending -> approved | rejected, decided by a manager."""

    def __init__(self, session: AsyncSession, channel: NotificationChannel):
        self.session = session
        self.channel = channel

    async def request_leave(
        self,
        caller: Caller,
        employee_id: int,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str | None = None,
    ) -> LeaveRequest:
        """File a pending leave request.

        Employees file for themselves; managers may file for anyone.
        """
        caller.require_self_or_manager(employee_id)
        if end_date < start_date:
            raise InvalidInput(
                f"Leave ends before it starts ({start_date} .. {end_date})",
                employee_id=employee_id,
            )
        try:
            kind = LeaveType(leave_type)
        except ValueError:
            raise InvalidInput(f"Unknown leave type: {leave_type}") from None

        try:
            if await self.session.get(Employee, employee_id) is None:
                raise EmployeeNotFound(employee_id)
            leave = LeaveRequest(
                employee_id=employee_id,
                leave_type=kind.value,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
                status=LeaveStatus.PENDING.value,
            )
            self.session.add(leave)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable(f"Could not save leave request: {e}") from e

        logger.info("Leave %s requested for employee %s (%s)", leave.id, employee_id, kind.value)
        await self._publish(leave, caller)
        self.channel.broadcast(REFRESH_DATA, "leaves")
        return leave

    async def decide(self, leave_id: int, status: str, caller: Caller) -> LeaveRequest:
        """Approve or reject a pending request.

        Raises:
            PermissionDenied: caller is not a manager.
            RecordNotFound: unknown leave id.
            InvalidTransitionError: the request was already decided.
        """
        caller.require_manager()
        try:
            target = LeaveStatus(status)
        except ValueError:
            raise InvalidInput(f"Unknown leave status: {status}") from None

        try:
            leave = await self.session.get(LeaveRequest, leave_id, with_for_update=True)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read leave {leave_id}: {e}") from e
        if leave is None:
            raise RecordNotFound("Leave request", leave_id)

        LeaveStateMachine.validate_transition(LeaveStatus(leave.status), target)
        leave.status = target.value
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable(f"Could not update leave {leave_id}: {e}") from e

        logger.info("Leave %s %s by %s", leave_id, target.value, caller)
        await self._publish(leave, caller)
        self.channel.broadcast(REFRESH_DATA, "leaves")
        self.channel.notify_employee(leave.employee_id, LEAVE_UPDATED, leave.to_dict())
        return leave

    async def list_all(self) -> list[LeaveRequest]:
        return await self._list(select(LeaveRequest))

    async def list_for_employee(self, employee_id: int) -> list[LeaveRequest]:
        return await self._list(select(LeaveRequest).where(LeaveRequest.employee_id == employee_id))

    async def _list(self, stmt) -> list[LeaveRequest]:
        try:
            result = await self.session.execute(stmt.order_by(LeaveRequest.start_date.desc()))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read leaves: {e}") from e
        return list(result.scalars().all())

    async def _publish(self, leave: LeaveRequest, caller: Caller) -> None:
        await self.channel.publish(
            LeaveChanged(
                metadata=EventMetadata.create(actor_id=caller.id, actor_role=caller.role),
                employee_id=leave.employee_id,
                leave_id=leave.id,
                start_date=leave.start_date,
                end_date=leave.end_date,
                status=leave.status,
            )
        )
