"""Typed exceptions for hrdesk.

Every error carries a machine-readable ``code`` so the API layer can map it
to a status and clients can tell a failed computation from a zero salary.

    HRDeskError
    +-- InvalidInput
    +-- EmployeeNotFound
    +-- RecordNotFound
    +-- StoreUnavailable
    +-- RunAlreadyInProgress
    +-- AttendanceConflict
    +-- PermissionDenied
"""

from __future__ import annotations

from typing import Any


class HRDeskError(Exception):
    """Base class for all hrdesk errors."""

    code: str = "HRDESK_ERROR"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidInput(HRDeskError):
    """Negative amounts/hours or malformed ranges handed to the salary engine."""

    code = "INVALID_INPUT"


class EmployeeNotFound(HRDeskError):
    """Employee id did not resolve in the record store."""

    code = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found", employee_id=employee_id)


class RecordNotFound(HRDeskError):
    """An attendance, leave, alert or review id did not resolve."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, record_id: int | str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found", entity=entity, record_id=record_id)


class StoreUnavailable(HRDeskError):
    """Read or write against the record store failed. Retryable by the caller."""

    code = "STORE_UNAVAILABLE"


class RunAlreadyInProgress(HRDeskError):
    """A salary run for the same period is still running."""

    code = "RUN_IN_PROGRESS"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Salary run for {year}-{month:02d} is already in progress",
            month=month,
            year=year,
        )


class AttendanceConflict(HRDeskError):
    """Check-in or check-out was already recorded for the day."""

    code = "ATTENDANCE_CONFLICT"


class PermissionDenied(HRDeskError):
    """Caller's role does not allow the operation."""

    code = "PERMISSION_DENIED"
