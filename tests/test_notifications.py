"""Tests for the notification channel, event emitter and WebSocket transport."""

from datetime import date

from hrdesk.calculators.types import SalaryPeriod
from hrdesk.notifications.channel import (
    ATTENDANCE_UPDATED,
    MANAGERS_ROOM,
    PERFORMANCE_UPDATED,
    REFRESH_DATA,
    SALARY_UPDATED,
    NullNotificationChannel,
    RecordingNotificationChannel,
    role_room,
    user_room,
)
from hrdesk.notifications.emitter import AsyncEventEmitter
from hrdesk.notifications.events import (
    AlertRaised,
    AttendanceChanged,
    EventMetadata,
    LeaveChanged,
)
from hrdesk.notifications.websocket import WebSocketNotificationChannel


def attendance_changed(employee_id=1, day=date(2026, 1, 5)) -> AttendanceChanged:
    return AttendanceChanged(
        metadata=EventMetadata.create(actor_id=employee_id, actor_role="employee"),
        employee_id=employee_id,
        attendance_id=10,
        record_date=day,
    )


class FakeWebSocket:
    """Collects what the channel sends."""

    def __init__(self, broken: bool = False):
        self.accepted = False
        self.sent: list[dict] = []
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(data)


class TestEvents:
    def test_attendance_change_affects_its_period_only(self):
        event = attendance_changed(day=date(2026, 1, 31))

        assert event.affects(1, SalaryPeriod(1, 2026))
        assert not event.affects(1, SalaryPeriod(2, 2026))
        assert not event.affects(2, SalaryPeriod(1, 2026))

    def test_leave_change_affects_overlapping_periods(self):
        event = LeaveChanged(
            metadata=EventMetadata.create(),
            employee_id=1,
            leave_id=2,
            start_date=date(2026, 1, 30),
            end_date=date(2026, 2, 2),
            status="approved",
        )

        assert event.affects(1, SalaryPeriod(1, 2026))
        assert event.affects(1, SalaryPeriod(2, 2026))
        assert not event.affects(1, SalaryPeriod(3, 2026))


class TestAsyncEventEmitter:
    async def test_routes_by_type(self):
        emitter = AsyncEventEmitter()
        seen = []

        async def handler(event):
            seen.append(event.event_type)

        emitter.on(AttendanceChanged, handler)
        await emitter.emit(attendance_changed())
        await emitter.emit(AlertRaised(metadata=EventMetadata.create(), alert_id=1, employee_id="all"))

        assert seen == ["AttendanceChanged"]

    async def test_failing_handler_is_isolated(self):
        emitter = AsyncEventEmitter()
        seen = []

        async def broken(event):
            raise ValueError("boom")

        async def ok(event):
            seen.append("ok")

        emitter.on(AttendanceChanged, broken)
        emitter.on([AttendanceChanged, LeaveChanged], ok)

        errors = await emitter.emit(attendance_changed())

        assert seen == ["ok"]
        assert len(errors) == 1 and isinstance(errors[0], ValueError)

    async def test_off_accepts_a_fresh_bound_method(self):
        class Listener:
            async def on_event(self, event):
                pass

        listener = Listener()
        emitter = AsyncEventEmitter()
        emitter.on(AttendanceChanged, listener.on_event)

        emitter.off(listener.on_event)

        assert emitter.handler_count == 0


class TestRecordingChannel:
    def test_keeps_messages_in_order(self):
        channel = RecordingNotificationChannel()

        channel.notify_employee(3, SALARY_UPDATED, {"final_salary": "1.00"})
        channel.broadcast(REFRESH_DATA, "leaves")
        channel.notify_room(MANAGERS_ROOM, "attendance_update", {})

        assert [m.target for m in channel.sent] == ["user-3", "*", "managers"]
        assert channel.to_employee(3, SALARY_UPDATED)[0].payload == {"final_salary": "1.00"}
        assert channel.broadcasts(REFRESH_DATA)[0].payload == "leaves"

        channel.clear()
        assert channel.sent == []

    async def test_null_channel_still_delivers_inbound_events(self):
        channel = NullNotificationChannel()
        seen = []

        async def handler(event):
            seen.append(event)

        channel.subscribe(AttendanceChanged, handler)
        channel.notify_employee(1, SALARY_UPDATED, {})
        channel.broadcast(REFRESH_DATA, "x")
        await channel.publish(attendance_changed())

        assert len(seen) == 1


class TestRooms:
    def test_room_names(self):
        assert user_room(5) == "user-5"
        assert role_room("manager") == "managers"
        assert role_room("developer") == "employees"


class TestWebSocketChannel:
    async def test_point_to_point_and_broadcast(self):
        channel = WebSocketNotificationChannel()
        jane, john = FakeWebSocket(), FakeWebSocket()
        await channel.connect(jane, 2, "employee")
        await channel.connect(john, 1, "manager")

        channel.notify_employee(2, SALARY_UPDATED, {"final_salary": "3000.00"})
        channel.broadcast(REFRESH_DATA, "employees")
        await channel.drain()

        assert jane.accepted and john.accepted
        assert jane.sent == [
            {"event": SALARY_UPDATED, "data": {"final_salary": "3000.00"}},
            {"event": REFRESH_DATA, "data": "employees"},
        ]
        assert john.sent == [{"event": REFRESH_DATA, "data": "employees"}]
        assert channel.connection_count(MANAGERS_ROOM) == 1
        assert channel.connection_count() == 2

    async def test_message_for_disconnected_employee_is_dropped(self):
        channel = WebSocketNotificationChannel()
        socket = FakeWebSocket()
        await channel.connect(socket, 1, "manager")

        channel.notify_employee(99, SALARY_UPDATED, {})
        await channel.drain()

        assert socket.sent == []

    async def test_broken_connection_is_removed(self):
        channel = WebSocketNotificationChannel()
        await channel.connect(FakeWebSocket(broken=True), 1, "employee")

        channel.notify_employee(1, SALARY_UPDATED, {})
        await channel.drain()

        assert channel.connection_count() == 0

    async def test_client_relays(self):
        channel = WebSocketNotificationChannel()
        jane, john = FakeWebSocket(), FakeWebSocket()
        await channel.connect(jane, 2, "employee")
        await channel.connect(john, 1, "manager")

        await channel.handle_client_message(
            {"event": "performance_update", "data": {"employee_id": 2, "rating": 5}}
        )
        await channel.handle_client_message(
            {"event": "attendance_update", "data": {"employee_id": 2}}
        )
        await channel.handle_client_message({"event": "global_update", "data": "alerts"})
        await channel.handle_client_message({"event": "unknown", "data": {}})
        await channel.drain()

        assert [m["event"] for m in jane.sent] == [
            PERFORMANCE_UPDATED,
            ATTENDANCE_UPDATED,
            REFRESH_DATA,
        ]
        assert john.sent == [{"event": REFRESH_DATA, "data": "alerts"}]
