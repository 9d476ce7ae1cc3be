"""Pydantic schemas for API request/response models.

Field names are the snake_case column names existing clients read.
Money fields go out as strings rounded to cents.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from hrdesk.calculators.types import AttendanceStatus, LeaveStatus, LeaveType, round_to_cents
from hrdesk.models.employee import EmployeeRole

Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: str(round_to_cents(v)), return_type=str, when_used="json"),
]
ClockTime = Annotated[
    time,
    PlainSerializer(lambda v: v.isoformat(timespec="minutes"), return_type=str, when_used="json"),
]


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: str
    code: str
    details: dict[str, Any] | None = None


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeCreate(BaseModel):
    """Schema for creating an employee.

    ``password_hash`` is stored as given; credential handling is external.
    """

    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    role: EmployeeRole = EmployeeRole.EMPLOYEE.value
    joining_date: date
    base_salary: Decimal = Field(ge=0)
    password_hash: str | None = None


class EmployeeUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, min_length=3, max_length=100)
    role: EmployeeRole | None = None
    joining_date: date | None = None
    base_salary: Decimal | None = Field(default=None, ge=0)
    password_hash: str | None = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    joining_date: date
    base_salary: Money


# ============================================================================
# Attendance schemas
# ============================================================================


class AttendanceCreate(BaseModel):
    """Manager entry of an attendance row."""

    model_config = ConfigDict(use_enum_values=True)

    employee_id: int
    date: date
    status: AttendanceStatus
    overtime_hours: int = Field(default=0, ge=0)
    check_in_time: time | None = None
    check_out_time: time | None = None


class AttendanceUpdate(BaseModel):
    """Manager edit; only the fields sent are changed."""

    model_config = ConfigDict(use_enum_values=True)

    status: AttendanceStatus | None = None
    overtime_hours: int | None = Field(default=None, ge=0)
    check_in_time: time | None = None
    check_out_time: time | None = None


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    date: date
    status: str
    overtime_hours: int
    check_in_time: ClockTime | None = None
    check_out_time: ClockTime | None = None


class CheckOutResponse(BaseModel):
    record: AttendanceResponse
    warning: str | None = None


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveCreate(BaseModel):
    """Leave request; employees may only file for themselves."""

    model_config = ConfigDict(use_enum_values=True)

    employee_id: int
    type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = None


class LeaveDecision(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: LeaveStatus


class LeaveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    employee_id: int
    type: str = Field(validation_alias="leave_type")
    start_date: date
    end_date: date
    reason: str | None = None
    status: str


# ============================================================================
# Performance and alert schemas
# ============================================================================


class PerformanceCreate(BaseModel):
    employee_id: int
    rating: int = Field(ge=1, le=5)
    feedback: str | None = None
    review_date: date


class PerformanceUpdate(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    feedback: str | None = None
    review_date: date | None = None


class PerformanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    rating: int
    feedback: str | None = None
    review_date: date


class AlertCreate(BaseModel):
    """``employee_id`` is an employee id or ``"all"``."""

    title: str = Field(min_length=1, max_length=100)
    message: str
    employee_id: str
    date: date


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    employee_id: str
    date: date


# ============================================================================
# Salary schemas
# ============================================================================


class SalaryCalculateRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1, le=9999)


class FailedEmployeeResponse(BaseModel):
    employee_id: int
    reason: str


class RunResultResponse(BaseModel):
    month: int
    year: int
    processed: list[int]
    failed: list[FailedEmployeeResponse]


class SalaryBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: int | None = None
    month: int | None = None
    year: int | None = None
    base_salary: Money
    overtime_pay: Money
    absence_deduction: Money
    late_deduction: Money
    unpaid_leave_deduction: Money
    deductions: Money
    final_salary: Money
    absences: int
    late_arrivals: int
    unpaid_leave_days: int
    overtime_hours: int


class SalaryRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    month: int
    year: int
    base_salary: Money
    overtime_pay: Money
    deductions: Money
    final_salary: Money
    calculation_date: datetime
