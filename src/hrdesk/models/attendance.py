"""Attendance and leave models."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.calculators.types import AttendanceStatus, LeaveStatus, LeaveType
from hrdesk.models.base import Base

if TYPE_CHECKING:
    from hrdesk.models.employee import Employee


class AttendanceRecord(Base):
    """One employee's attendance for one calendar day.

    One record per employee per day is assumed by salary aggregation; it is
    not enforced by a constraint.
    """

    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    overtime_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    check_in_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    check_out_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('present', 'absent', 'late')",
            name="attendance_status_check",
        ),
        CheckConstraint("overtime_hours >= 0", name="attendance_overtime_nonnegative"),
    )

    employee: Mapped[Employee] = relationship(back_populates="attendance")

    @property
    def is_absent(self) -> bool:
        return self.status == AttendanceStatus.ABSENT.value


class LeaveRequest(Base):
    """Leave request; decided once by a manager."""

    __tablename__ = "leaves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    leave_type: Mapped[str] = mapped_column("type", String(20), nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LeaveStatus.PENDING.value
    )

    __table_args__ = (
        CheckConstraint(
            "type IN ('paid', 'unpaid', 'sick', 'vacation')",
            name="leave_type_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="leave_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="leave_range_check"),
    )

    employee: Mapped[Employee] = relationship(back_populates="leaves")

    @property
    def is_unpaid(self) -> bool:
        return self.leave_type == LeaveType.UNPAID.value
