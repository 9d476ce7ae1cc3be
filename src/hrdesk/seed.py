"""Demo data for a fresh database."""

from __future__ import annotations

import logging
from datetime import date, time, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.models import Alert, AttendanceRecord, Employee, LeaveRequest, PerformanceReview

logger = logging.getLogger(__name__)

DEMO_EMPLOYEES = [
    ("John Manager", "manager@example.com", "manager", date(2022, 1, 1), Decimal("5000")),
    ("Jane Employee", "employee@example.com", "employee", date(2022, 2, 15), Decimal("3000")),
    ("Bob Developer", "developer@example.com", "developer", date(2022, 3, 10), Decimal("4000")),
]


def _month_before(day: date) -> date:
    first = day.replace(day=1)
    previous = first - timedelta(days=1)
    return previous.replace(day=min(day.day, previous.day))


async def seed_demo(session: AsyncSession, today: date | None = None) -> bool:
    """Insert demo employees and their records when the store is empty.

    Returns False (and writes nothing) if any employee exists.
    """
    count = await session.scalar(select(func.count()).select_from(Employee))
    if count:
        logger.info("Database already has %d employees; skipping demo data", count)
        return False

    today = today or date.today()
    yesterday = today - timedelta(days=1)
    next_week = today + timedelta(days=7)

    employees = [
        Employee(name=name, email=email, role=role, joining_date=joined, base_salary=salary)
        for name, email, role, joined, salary in DEMO_EMPLOYEES
    ]
    session.add_all(employees)
    await session.flush()

    for employee in employees:
        session.add_all(
            [
                AttendanceRecord(
                    employee_id=employee.id,
                    date=today,
                    status="present",
                    overtime_hours=2,
                    check_in_time=time(9, 0),
                    check_out_time=time(18, 0),
                ),
                AttendanceRecord(
                    employee_id=employee.id,
                    date=yesterday,
                    status="present",
                    overtime_hours=0,
                    check_in_time=time(9, 30),
                    check_out_time=time(17, 30),
                ),
                PerformanceReview(
                    employee_id=employee.id,
                    rating=4,
                    feedback="Good performance overall. Keep up the good work!",
                    review_date=_month_before(today),
                ),
            ]
        )

    jane = employees[1]
    session.add_all(
        [
            LeaveRequest(
                employee_id=jane.id,
                leave_type="vacation",
                start_date=next_week,
                end_date=next_week + timedelta(days=1),
                reason="Family vacation",
                status="pending",
            ),
            LeaveRequest(
                employee_id=jane.id,
                leave_type="sick",
                start_date=today,
                end_date=today,
                reason="Doctor appointment",
                status="approved",
            ),
            Alert(
                title="Team Meeting",
                message="Reminder: Team meeting tomorrow at 10 AM",
                employee_id=Alert.ALL,
                date=today,
            ),
            Alert(
                title="Project Deadline",
                message="The project deadline is approaching",
                employee_id=str(jane.id),
                date=next_week,
            ),
        ]
    )
    await session.commit()
    logger.info("Inserted demo data for %d employees", len(employees))
    return True
