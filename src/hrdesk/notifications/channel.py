"""Notification channel boundary.

Outbound delivery is fire-and-forget and at-most-once: a message addressed
to someone who is not connected is dropped. Live messages are a UX and
cache-invalidation signal only; the record store stays canonical.

The channel also carries the inbound stream of change events
(``subscribe``/``publish``) the salary core listens to.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from hrdesk.notifications.emitter import AsyncEventEmitter, AsyncEventHandler
from hrdesk.notifications.events import DomainEvent

logger = logging.getLogger(__name__)

# Outbound event names (wire-compatible with existing clients)
SALARY_UPDATED = "salary_updated"
SALARY_CALCULATION_COMPLETE = "salary_calculation_complete"
ATTENDANCE_UPDATED = "attendance_updated"
ATTENDANCE_UPDATE = "attendance_update"
LEAVE_UPDATED = "leave_updated"
PERFORMANCE_UPDATED = "performance_updated"
PERFORMANCE_UPDATE = "performance_update"
ALERT_RECEIVED = "alert_received"
PROFILE_UPDATED = "profile_updated"
REFRESH_DATA = "refresh_data"

# Rooms
MANAGERS_ROOM = "managers"
EMPLOYEES_ROOM = "employees"


def user_room(employee_id: int | str) -> str:
    return f"user-{employee_id}"


def role_room(role: str) -> str:
    """Managers share one room; every other role joins the employees room."""
    return MANAGERS_ROOM if role == "manager" else EMPLOYEES_ROOM


class NotificationChannel(ABC):
    """Point-to-point and broadcast delivery plus the inbound event stream."""

    def __init__(self) -> None:
        self.events = AsyncEventEmitter()

    @abstractmethod
    def notify_employee(self, employee_id: int, event_name: str, payload: Any) -> None:
        """Send to one employee's connections. Never blocks the caller."""

    @abstractmethod
    def notify_room(self, room: str, event_name: str, payload: Any) -> None:
        """Send to every connection in a room (``managers``/``employees``)."""

    @abstractmethod
    def broadcast(self, event_name: str, payload: Any) -> None:
        """Send to every connected client. Never blocks the caller."""

    def subscribe(
        self,
        event_type: type[DomainEvent] | list[type[DomainEvent]],
        handler: AsyncEventHandler,
    ) -> None:
        """Listen to inbound change events."""
        self.events.on(event_type, handler)

    def unsubscribe(self, handler: AsyncEventHandler) -> None:
        self.events.off(handler)

    async def publish(self, event: DomainEvent) -> list[Exception]:
        """Deliver an inbound change event to subscribers."""
        return await self.events.emit(event)

    async def drain(self) -> None:
        """Wait for in-flight sends (shutdown and tests)."""


class NullNotificationChannel(NotificationChannel):
    """Drops every outbound message; inbound events still reach subscribers."""

    def notify_employee(self, employee_id: int, event_name: str, payload: Any) -> None:
        logger.debug("Dropping %s for employee %s (null channel)", event_name, employee_id)

    def notify_room(self, room: str, event_name: str, payload: Any) -> None:
        logger.debug("Dropping %s for room %s (null channel)", event_name, room)

    def broadcast(self, event_name: str, payload: Any) -> None:
        logger.debug("Dropping broadcast %s (null channel)", event_name)


@dataclass(frozen=True)
class SentMessage:
    """One message captured by ``RecordingNotificationChannel``."""

    target: str  # room name or "*" for broadcast
    event_name: str
    payload: Any


class RecordingNotificationChannel(NotificationChannel):
    """Test double that keeps every outbound message in order."""

    BROADCAST = "*"

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[SentMessage] = []

    def notify_employee(self, employee_id: int, event_name: str, payload: Any) -> None:
        self.sent.append(SentMessage(user_room(employee_id), event_name, payload))

    def notify_room(self, room: str, event_name: str, payload: Any) -> None:
        self.sent.append(SentMessage(room, event_name, payload))

    def broadcast(self, event_name: str, payload: Any) -> None:
        self.sent.append(SentMessage(self.BROADCAST, event_name, payload))

    def messages(self, event_name: str | None = None, target: str | None = None) -> list[SentMessage]:
        """Filter captured messages by event name and/or target."""
        return [
            m
            for m in self.sent
            if (event_name is None or m.event_name == event_name)
            and (target is None or m.target == target)
        ]

    def to_employee(self, employee_id: int, event_name: str | None = None) -> list[SentMessage]:
        return self.messages(event_name, user_room(employee_id))

    def broadcasts(self, event_name: str | None = None) -> list[SentMessage]:
        return self.messages(event_name, self.BROADCAST)

    def clear(self) -> None:
        self.sent.clear()
