"""Protocol for the record store the salary core reads from.

The salary core never talks to SQLAlchemy directly; it goes through this
protocol so runs can be exercised against a fake store.
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import Any, Callable, Protocol

from hrdesk.calculators.types import AttendanceLike, LeaveLike, SalaryBreakdown


class EmployeeLike(Protocol):
    """Employee fields the core reads."""

    id: int
    base_salary: Any


class RecordStore(Protocol):
    """Filtered reads and salary writes against the record store.

    Every call is a suspension point and may raise ``StoreUnavailable``.
    """

    async def list_employee_ids(self) -> list[int]:
        """Ids of every employee."""
        ...

    async def get_employee(self, employee_id: int) -> EmployeeLike | None:
        """One employee, or None when the id does not resolve."""
        ...

    async def list_attendance(
        self, employee_id: int, start: date, end: date
    ) -> Sequence[AttendanceLike]:
        """Attendance rows of one employee with ``start <= date <= end``."""
        ...

    async def list_approved_leaves(
        self, employee_id: int, start: date, end: date
    ) -> Sequence[LeaveLike]:
        """Approved leaves of one employee overlapping ``[start, end]``."""
        ...

    async def save_salary_record(self, breakdown: SalaryBreakdown) -> None:
        """Insert or overwrite the breakdown for its (employee, month, year)."""
        ...


# Opens a unit of work; each one reads a point-in-time snapshot and commits
# its own writes on clean exit.
StoreProvider = Callable[[], AbstractAsyncContextManager[RecordStore]]
