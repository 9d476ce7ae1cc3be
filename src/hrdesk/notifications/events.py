"""Inbound change events used to invalidate in-flight salary computations.

All events are immutable and carry metadata about who caused them. They are
routed in-process by ``AsyncEventEmitter``; they are not the outbound live
messages clients receive (those are plain ``event_name`` + payload dicts).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from hrdesk.calculators.types import SalaryPeriod


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every inbound event."""

    event_id: UUID
    timestamp: datetime
    actor_id: int | None  # Employee who caused the change
    actor_role: str | None
    source: str  # 'api', 'websocket', 'cli'

    @classmethod
    def create(
        cls,
        actor_id: int | None = None,
        actor_role: str | None = None,
        source: str = "api",
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            actor_id=actor_id,
            actor_role=actor_role,
            source=source,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base class for inbound events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    def affects(self, employee_id: int, period: SalaryPeriod) -> bool:
        """Whether this change can alter the salary of ``employee_id`` for ``period``."""
        return False


@dataclass(frozen=True)
class AttendanceChanged(DomainEvent):
    """An attendance row was created or edited."""

    employee_id: int
    attendance_id: int | None
    record_date: date

    def affects(self, employee_id: int, period: SalaryPeriod) -> bool:
        return self.employee_id == employee_id and period.contains(self.record_date)


@dataclass(frozen=True)
class LeaveChanged(DomainEvent):
    """A leave request was created or decided."""

    employee_id: int
    leave_id: int
    start_date: date
    end_date: date
    status: str

    def affects(self, employee_id: int, period: SalaryPeriod) -> bool:
        return self.employee_id == employee_id and period.overlaps(
            self.start_date, self.end_date
        )


@dataclass(frozen=True)
class PerformanceChanged(DomainEvent):
    """A performance review was added or edited."""

    employee_id: int
    review_id: int | None


@dataclass(frozen=True)
class AlertRaised(DomainEvent):
    """An alert was posted, to one employee or to ``"all"``."""

    alert_id: int
    employee_id: str
