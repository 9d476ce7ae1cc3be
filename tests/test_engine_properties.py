"""Property-based tests for the salary engine.

Hypothesis generates arbitrary months of attendance and leave; the
breakdown identities must hold for all of them.
"""

from __future__ import annotations

from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from hrdesk.calculators.engine import compute_salary
from hrdesk.calculators.types import AttendanceInput, LeaveInput

from .conftest import FakeEmployee

salaries = st.decimals(min_value=0, max_value=100_000, places=2)

attendance_rows = st.lists(
    st.builds(
        AttendanceInput,
        status=st.sampled_from(["present", "absent", "late"]),
        overtime_hours=st.integers(min_value=0, max_value=12),
    ),
    max_size=31,
)


@st.composite
def leave_rows(draw):
    start = date(2026, 1, 1) + timedelta(days=draw(st.integers(min_value=0, max_value=30)))
    length = draw(st.integers(min_value=0, max_value=10))
    return LeaveInput(
        leave_type=draw(st.sampled_from(["paid", "unpaid", "sick", "vacation"])),
        start_date=start,
        end_date=start + timedelta(days=length),
        status=draw(st.sampled_from(["pending", "approved", "rejected"])),
    )


class TestBreakdownIdentities:
    """Identities that tie the breakdown fields together."""

    @settings(max_examples=200)
    @given(base=salaries, records=attendance_rows, leaves=st.lists(leave_rows(), max_size=5))
    def test_final_is_base_plus_overtime_minus_deductions(self, base, records, leaves):
        result = compute_salary(FakeEmployee(id=1, base_salary=base), records, leaves)

        assert result.deductions == (
            result.absence_deduction + result.late_deduction + result.unpaid_leave_deduction
        )
        assert result.final_salary == result.base_salary + result.overtime_pay - result.deductions

    @given(base=salaries, records=attendance_rows, leaves=st.lists(leave_rows(), max_size=5))
    def test_components_are_never_negative(self, base, records, leaves):
        result = compute_salary(FakeEmployee(id=1, base_salary=base), records, leaves)

        assert result.overtime_pay >= 0
        assert result.absence_deduction >= 0
        assert result.late_deduction >= 0
        assert result.unpaid_leave_deduction >= 0

    @given(base=salaries, records=attendance_rows)
    def test_counters_match_the_rows(self, base, records):
        result = compute_salary(FakeEmployee(id=1, base_salary=base), records, [])

        assert result.absences == sum(1 for r in records if r.status == "absent")
        assert result.late_arrivals == sum(1 for r in records if r.status == "late")
        assert result.overtime_hours == sum(r.overtime_hours for r in records)


class TestMonotonicity:
    @given(base=salaries, records=attendance_rows)
    def test_an_extra_absence_never_raises_pay(self, base, records):
        employee = FakeEmployee(id=1, base_salary=base)

        before = compute_salary(employee, records, [])
        after = compute_salary(employee, records + [AttendanceInput("absent")], [])

        assert after.final_salary <= before.final_salary
        assert after.absences == before.absences + 1
