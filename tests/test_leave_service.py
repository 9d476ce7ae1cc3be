"""Tests for LeaveService requests and decisions."""

from datetime import date

import pytest

from hrdesk.exceptions import InvalidInput, PermissionDenied, RecordNotFound
from hrdesk.notifications.channel import LEAVE_UPDATED, REFRESH_DATA
from hrdesk.notifications.events import LeaveChanged
from hrdesk.services.caller import Caller
from hrdesk.services.leave_service import LeaveService
from hrdesk.services.state_machine import InvalidTransitionError

JANE = Caller(id=2, role="employee")


@pytest.fixture
def service(session, channel) -> LeaveService:
    return LeaveService(session, channel)


async def file_leave(service, **overrides):
    values = dict(
        employee_id=2,
        leave_type="unpaid",
        start_date=date(2026, 1, 10),
        end_date=date(2026, 1, 11),
        reason="Family",
    )
    values.update(overrides)
    return await service.request_leave(JANE, **values)


class TestRequestLeave:
    async def test_starts_pending(self, service, employees, channel):
        leave = await file_leave(service)

        assert leave.status == "pending"
        assert leave.leave_type == "unpaid"
        assert channel.broadcasts(REFRESH_DATA)[0].payload == "leaves"

    async def test_end_before_start(self, service, employees):
        with pytest.raises(InvalidInput):
            await file_leave(service, start_date=date(2026, 1, 11), end_date=date(2026, 1, 10))

    async def test_unknown_type(self, service, employees):
        with pytest.raises(InvalidInput):
            await file_leave(service, leave_type="sabbatical")

    async def test_cannot_file_for_someone_else(self, service, employees):
        with pytest.raises(PermissionDenied):
            await file_leave(service, employee_id=3)


class TestDecide:
    async def test_manager_approves(self, service, employees, channel, manager):
        leave = await file_leave(service)
        seen = []

        async def handler(event):
            seen.append(event)

        channel.subscribe(LeaveChanged, handler)

        decided = await service.decide(leave.id, "approved", manager)

        assert decided.status == "approved"
        [message] = channel.to_employee(2, LEAVE_UPDATED)
        assert message.payload["status"] == "approved"
        assert message.payload["type"] == "unpaid"
        assert seen[0].status == "approved"
        assert seen[0].metadata.actor_role == "manager"

    async def test_employee_cannot_decide(self, service, employees):
        leave = await file_leave(service)

        with pytest.raises(PermissionDenied):
            await service.decide(leave.id, "approved", JANE)

    async def test_decision_is_final(self, service, employees, manager):
        leave = await file_leave(service)
        await service.decide(leave.id, "rejected", manager)

        with pytest.raises(InvalidTransitionError):
            await service.decide(leave.id, "approved", manager)

    async def test_unknown_leave(self, service, employees, manager):
        with pytest.raises(RecordNotFound):
            await service.decide(404, "approved", manager)

    async def test_listing(self, service, employees, manager):
        await file_leave(service)
        await file_leave(service, start_date=date(2026, 2, 1), end_date=date(2026, 2, 1))

        assert len(await service.list_all()) == 2
        assert len(await service.list_for_employee(2)) == 2
        assert await service.list_for_employee(3) == []
