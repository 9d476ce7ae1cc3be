"""Salary calculation engine."""

from hrdesk.calculators.engine import SalaryEngine, compute_salary
from hrdesk.calculators.types import (
    AttendanceInput,
    AttendanceStatus,
    LeaveInput,
    LeaveStatus,
    LeaveType,
    SalaryBreakdown,
    SalaryPeriod,
    round_to_cents,
)

__all__ = [
    "SalaryEngine",
    "compute_salary",
    "AttendanceInput",
    "AttendanceStatus",
    "LeaveInput",
    "LeaveStatus",
    "LeaveType",
    "SalaryBreakdown",
    "SalaryPeriod",
    "round_to_cents",
]
