"""Live notifications package.

This package provides:
- The NotificationChannel boundary (point-to-point, rooms, broadcast)
- Inbound change events and the emitter that routes them
- A WebSocket transport, a null channel and a recording test double
"""

from hrdesk.notifications.channel import (
    ALERT_RECEIVED,
    ATTENDANCE_UPDATE,
    ATTENDANCE_UPDATED,
    LEAVE_UPDATED,
    PERFORMANCE_UPDATE,
    PERFORMANCE_UPDATED,
    PROFILE_UPDATED,
    REFRESH_DATA,
    SALARY_CALCULATION_COMPLETE,
    SALARY_UPDATED,
    NotificationChannel,
    NullNotificationChannel,
    RecordingNotificationChannel,
    SentMessage,
)
from hrdesk.notifications.emitter import AsyncEventEmitter
from hrdesk.notifications.events import (
    AlertRaised,
    AttendanceChanged,
    DomainEvent,
    EventMetadata,
    LeaveChanged,
    PerformanceChanged,
)

__all__ = [
    # Channels
    "NotificationChannel",
    "NullNotificationChannel",
    "RecordingNotificationChannel",
    "SentMessage",
    # Event names
    "ALERT_RECEIVED",
    "ATTENDANCE_UPDATE",
    "ATTENDANCE_UPDATED",
    "LEAVE_UPDATED",
    "PERFORMANCE_UPDATE",
    "PERFORMANCE_UPDATED",
    "PROFILE_UPDATED",
    "REFRESH_DATA",
    "SALARY_CALCULATION_COMPLETE",
    "SALARY_UPDATED",
    # Inbound events
    "AsyncEventEmitter",
    "DomainEvent",
    "EventMetadata",
    "AttendanceChanged",
    "LeaveChanged",
    "PerformanceChanged",
    "AlertRaised",
]
