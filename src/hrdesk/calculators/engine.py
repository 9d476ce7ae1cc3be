"""Salary engine - pure reducer from attendance and leave rows to a breakdown.

Rules (legacy-compatible, do not change without a product decision):

    daily      = base / 30                 (fixed 30-day month)
    absence    = daily * #absent
    late       = (daily / 3) * #late
    unpaid     = daily * days, per approved unpaid leave, days inclusive
    overtime   = (base / (30 * 8)) * 1.5 * hours, on records of any status
    deductions = absence + late + unpaid
    final      = base + overtime - deductions   (may be negative)

The engine filters nothing by employee or date; callers hand it rows that
already belong to one employee and one period.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Context, Decimal, localcontext
from typing import Any

from hrdesk.calculators.types import (
    AttendanceLike,
    AttendanceStatus,
    LeaveLike,
    LeaveStatus,
    LeaveType,
    SalaryBreakdown,
    SalaryPeriod,
)
from hrdesk.exceptions import InvalidInput


class SalaryEngine:
    """Computes one employee's salary breakdown for one period.

    Stateless: identical inputs give identical breakdowns.
    """

    DAYS_PER_MONTH = Decimal(30)
    HOURS_PER_DAY = Decimal(8)
    OVERTIME_MULTIPLIER = Decimal("1.5")
    LATE_FRACTION_DIVISOR = Decimal(3)

    # Arithmetic context; fixed so results never depend on the caller's context
    CONTEXT = Context(prec=28)

    def compute(
        self,
        employee: Any,
        attendance_in_period: Iterable[AttendanceLike],
        approved_leaves_in_period: Iterable[LeaveLike],
        period: SalaryPeriod | None = None,
    ) -> SalaryBreakdown:
        """Compute the breakdown.

        Args:
            employee: Object with ``base_salary`` (and optionally ``id``).
            attendance_in_period: The employee's attendance rows for the period.
            approved_leaves_in_period: The employee's approved leaves for the period.
            period: Stamped onto the breakdown; not used for filtering.

        Raises:
            InvalidInput: negative base salary, negative overtime hours, or a
                leave that ends before it starts.
        """
        base_salary = self._to_decimal(getattr(employee, "base_salary"))
        if base_salary < 0:
            raise InvalidInput(
                f"Base salary must not be negative (got {base_salary})",
                employee_id=getattr(employee, "id", None),
            )

        records = list(attendance_in_period)
        leaves = list(approved_leaves_in_period)

        absences = 0
        late_arrivals = 0
        overtime_hours = 0
        for record in records:
            hours = record.overtime_hours or 0
            if hours < 0:
                raise InvalidInput(
                    f"Overtime hours must not be negative (got {hours})",
                    employee_id=getattr(employee, "id", None),
                )
            overtime_hours += hours
            status = _value(record.status)
            if status == AttendanceStatus.ABSENT.value:
                absences += 1
            elif status == AttendanceStatus.LATE.value:
                late_arrivals += 1

        unpaid_leave_days = 0
        for leave in leaves:
            if leave.end_date < leave.start_date:
                raise InvalidInput(
                    f"Leave ends ({leave.end_date}) before it starts ({leave.start_date})",
                    employee_id=getattr(employee, "id", None),
                )
            if (
                _value(leave.leave_type) == LeaveType.UNPAID.value
                and _value(leave.status) == LeaveStatus.APPROVED.value
            ):
                unpaid_leave_days += (leave.end_date - leave.start_date).days + 1

        with localcontext(self.CONTEXT):
            daily = base_salary / self.DAYS_PER_MONTH
            hourly = base_salary / (self.DAYS_PER_MONTH * self.HOURS_PER_DAY)

            absence_deduction = daily * absences
            late_deduction = (daily / self.LATE_FRACTION_DIVISOR) * late_arrivals
            unpaid_leave_deduction = daily * unpaid_leave_days
            overtime_pay = hourly * self.OVERTIME_MULTIPLIER * overtime_hours

            deductions = absence_deduction + late_deduction + unpaid_leave_deduction
            final_salary = base_salary + overtime_pay - deductions

        return SalaryBreakdown(
            base_salary=base_salary,
            overtime_pay=overtime_pay,
            absence_deduction=absence_deduction,
            late_deduction=late_deduction,
            unpaid_leave_deduction=unpaid_leave_deduction,
            deductions=deductions,
            final_salary=final_salary,
            absences=absences,
            late_arrivals=late_arrivals,
            unpaid_leave_days=unpaid_leave_days,
            overtime_hours=overtime_hours,
            employee_id=getattr(employee, "id", None),
            month=period.month if period else None,
            year=period.year if period else None,
        )

    @staticmethod
    def _to_decimal(value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, float):
            # str() keeps the value the user typed instead of the binary expansion
            return Decimal(str(value))
        return Decimal(value)


def _value(raw: Any) -> Any:
    """Enum members and plain strings compare the same way."""
    return raw.value if hasattr(raw, "value") else raw


_default_engine = SalaryEngine()


def compute_salary(
    employee: Any,
    attendance_in_period: Iterable[AttendanceLike],
    approved_leaves_in_period: Iterable[LeaveLike],
    period: SalaryPeriod | None = None,
) -> SalaryBreakdown:
    """Module-level shortcut for ``SalaryEngine().compute``."""
    return _default_engine.compute(
        employee, attendance_in_period, approved_leaves_in_period, period
    )
