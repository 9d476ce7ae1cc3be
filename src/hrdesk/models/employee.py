"""Employee, performance review and alert models."""

from __future__ import annotations

import datetime as dt
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.models.base import Base

if TYPE_CHECKING:
    from hrdesk.models.attendance import AttendanceRecord, LeaveRequest
    from hrdesk.models.salary import SalaryRecord


class EmployeeRole(str, Enum):
    """Employee roles."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    DEVELOPER = "developer"
    DESIGNER = "designer"
    HR = "hr"


class Employee(Base):
    """Employee record."""

    __tablename__ = "employees"
    __private_columns__ = frozenset({"password_hash"})

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    # Opaque; hashing and verification belong to the auth service
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=EmployeeRole.EMPLOYEE.value)
    joining_date: Mapped[date] = mapped_column(Date, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('employee', 'manager', 'developer', 'designer', 'hr')",
            name="employee_role_check",
        ),
        CheckConstraint("base_salary >= 0", name="employee_base_salary_nonnegative"),
    )

    # Relationships; dependent rows are removed explicitly on delete
    attendance: Mapped[list[AttendanceRecord]] = relationship(
        back_populates="employee"
    )
    leaves: Mapped[list[LeaveRequest]] = relationship(
        back_populates="employee"
    )
    reviews: Mapped[list[PerformanceReview]] = relationship(
        back_populates="employee"
    )
    salary_records: Mapped[list[SalaryRecord]] = relationship(
        back_populates="employee"
    )

    @property
    def is_manager(self) -> bool:
        return self.role == EmployeeRole.MANAGER.value


class PerformanceReview(Base):
    """Performance review of an employee."""

    __tablename__ = "performance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    review_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="performance_rating_range"),
    )

    employee: Mapped[Employee] = relationship(back_populates="reviews")


class Alert(Base):
    """Alert addressed to one employee or to everyone.

    ``employee_id`` is a string so that ``"all"`` can address every employee.
    """

    __tablename__ = "alerts"

    ALL = "all"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    @property
    def is_broadcast(self) -> bool:
        return self.employee_id == self.ALL
