"""State machines for salary runs and leave requests."""

from __future__ import annotations

from enum import Enum

from hrdesk.calculators.types import LeaveStatus


class SalaryRunStatus(str, Enum):
    """Status of the salary run for one period."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class _StateMachine:
    VALID_TRANSITIONS: dict[str, list[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class SalaryRunStateMachine(_StateMachine):
    """Allowed transitions:
    - idle → running
    - running → completed
    - completed → running (recalculation)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        SalaryRunStatus.IDLE: [SalaryRunStatus.RUNNING],
        SalaryRunStatus.RUNNING: [SalaryRunStatus.COMPLETED],
        SalaryRunStatus.COMPLETED: [SalaryRunStatus.RUNNING],
    }


class LeaveStateMachine(_StateMachine):
    """Allowed transitions:
    - pending → approved
    - pending → rejected

    Approved and rejected are terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        LeaveStatus.PENDING: [LeaveStatus.APPROVED, LeaveStatus.REJECTED],
        LeaveStatus.APPROVED: [],
        LeaveStatus.REJECTED: [],
    }

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_next_statuses(status)
