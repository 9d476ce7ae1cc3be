"""Persisted salary breakdowns."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.models.base import Base

if TYPE_CHECKING:
    from hrdesk.models.employee import Employee


class SalaryRecord(Base):
    """Last computed breakdown for one employee and period.

    Recomputing the same (employee_id, month, year) overwrites the row.
    """

    __tablename__ = "salary_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    final_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    calculation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="salary_record_period_unique"),
    )

    employee: Mapped[Employee] = relationship(back_populates="salary_records")


class SalaryRun(Base):
    """Run status of one period, shared by every process using the database.

    A row exists once the period has been run at least once; no row means
    ``idle``.
    """

    __tablename__ = "salary_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("month", "year", name="salary_run_period_unique"),)
