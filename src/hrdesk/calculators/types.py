"""Type definitions for the salary calculation pipeline."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Protocol

from hrdesk.exceptions import InvalidInput

CENTS = Decimal("0.01")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (presentation only)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class AttendanceStatus(str, Enum):
    """Attendance record status values."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class LeaveType(str, Enum):
    """Leave request types."""

    PAID = "paid"
    UNPAID = "unpaid"
    SICK = "sick"
    VACATION = "vacation"


class LeaveStatus(str, Enum):
    """Leave request status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceLike(Protocol):
    """Anything with the attendance fields the engine reads (ORM row or input)."""

    status: str
    overtime_hours: int


class LeaveLike(Protocol):
    """Anything with the leave fields the engine reads (ORM row or input)."""

    leave_type: str
    status: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class AttendanceInput:
    """Attendance row as handed to the engine."""

    status: str
    overtime_hours: int = 0
    date: date | None = None


@dataclass(frozen=True)
class LeaveInput:
    """Leave row as handed to the engine."""

    leave_type: str
    start_date: date
    end_date: date
    status: str = LeaveStatus.APPROVED.value


@dataclass(frozen=True)
class SalaryPeriod:
    """Calendar month window, inclusive on both ends."""

    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidInput(f"Month must be between 1 and 12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise InvalidInput(f"Year out of range: {self.year}")

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def key(self) -> tuple[int, int]:
        return (self.month, self.year)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        """Overlap test used for leave selection."""
        return start <= self.end and end >= self.start

    def clip(self, start: date, end: date) -> tuple[date, date]:
        """Clip a date range to this period."""
        return max(start, self.start), min(end, self.end)

    @classmethod
    def containing(cls, day: date) -> SalaryPeriod:
        return cls(month=day.month, year=day.year)

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"


@dataclass(frozen=True)
class SalaryBreakdown:
    """Result of one salary computation.

    Amounts are kept at full precision; ``to_payload`` rounds to cents.
    """

    base_salary: Decimal
    overtime_pay: Decimal
    absence_deduction: Decimal
    late_deduction: Decimal
    unpaid_leave_deduction: Decimal
    deductions: Decimal
    final_salary: Decimal

    # Counters behind the amounts
    absences: int = 0
    late_arrivals: int = 0
    unpaid_leave_days: int = 0
    overtime_hours: int = 0

    employee_id: int | None = None
    month: int | None = None
    year: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Wire shape: snake_case fields, money as strings rounded to cents."""
        return {
            "employee_id": self.employee_id,
            "month": self.month,
            "year": self.year,
            "base_salary": str(round_to_cents(self.base_salary)),
            "overtime_pay": str(round_to_cents(self.overtime_pay)),
            "absence_deduction": str(round_to_cents(self.absence_deduction)),
            "late_deduction": str(round_to_cents(self.late_deduction)),
            "unpaid_leave_deduction": str(round_to_cents(self.unpaid_leave_deduction)),
            "deductions": str(round_to_cents(self.deductions)),
            "final_salary": str(round_to_cents(self.final_salary)),
            "absences": self.absences,
            "late_arrivals": self.late_arrivals,
            "unpaid_leave_days": self.unpaid_leave_days,
            "overtime_hours": self.overtime_hours,
        }
