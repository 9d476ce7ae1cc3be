"""Pytest fixtures for hrdesk tests."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import date, time
from decimal import Decimal

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from hrdesk.api.app import create_app
from hrdesk.calculators.types import AttendanceInput, LeaveInput, SalaryBreakdown
from hrdesk.config import Settings
from hrdesk.database import make_session_factory
from hrdesk.exceptions import StoreUnavailable
from hrdesk.models import Base, Employee
from hrdesk.notifications.channel import RecordingNotificationChannel
from hrdesk.services.caller import Caller
from hrdesk.services.locking_service import KeyedLocks
from hrdesk.store.base import StoreProvider

JWT_SECRET = "test-secret"


def make_settings(**overrides) -> Settings:
    """Settings for tests; no environment involved."""
    base = Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        host="127.0.0.1",
        port=5000,
        debug=False,
        log_level="WARNING",
        jwt_secret=JWT_SECRET,
        jwt_algorithm="HS256",
        client_url="http://localhost:3000",
        workday_start=time(9, 0),
        standard_work_hours=8,
        salary_run_concurrency=5,
        employee_timeout_seconds=5.0,
        max_recompute_attempts=2,
        salary_run_stale_seconds=3600.0,
    )
    return replace(base, **overrides)


def make_token(employee_id: int, role: str, email: str | None = None) -> str:
    return jwt.encode(
        {"id": employee_id, "role": role, "email": email},
        JWT_SECRET,
        algorithm="HS256",
    )


def auth(employee_id: int, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(employee_id, role)}"}


# ============================================================================
# Fake record store for failure injection
# ============================================================================


@dataclass
class FakeEmployee:
    id: int
    base_salary: Decimal


class FakeRecordStore:
    """In-memory record store with knobs for failures and delays."""

    def __init__(self) -> None:
        self.employees: dict[int, FakeEmployee] = {}
        self.attendance: dict[int, list[AttendanceInput]] = defaultdict(list)
        self.leaves: dict[int, list[LeaveInput]] = defaultdict(list)
        self.saved: dict[tuple[int, int, int], SalaryBreakdown] = {}
        self.save_count = 0

        self.fail_listing = False
        self.fail_reads_for: set[int] = set()
        self.delay_for: dict[int, float] = {}
        # Awaited on every attendance read; lets tests edit data mid-computation
        self.on_read: Callable[[int], Awaitable[None]] | None = None
        # Awaited before each salary record is stored
        self.on_save: Callable[[SalaryBreakdown], Awaitable[None]] | None = None

    def add_employee(self, employee_id: int, base_salary: str | Decimal) -> FakeEmployee:
        employee = FakeEmployee(employee_id, Decimal(base_salary))
        self.employees[employee_id] = employee
        return employee

    async def list_employee_ids(self) -> list[int]:
        if self.fail_listing:
            raise StoreUnavailable("employees table unreachable")
        return list(self.employees)

    async def get_employee(self, employee_id: int) -> FakeEmployee | None:
        return self.employees.get(employee_id)

    async def list_attendance(self, employee_id: int, start: date, end: date):
        if employee_id in self.fail_reads_for:
            raise StoreUnavailable(f"attendance of {employee_id} unreachable")
        if employee_id in self.delay_for:
            await asyncio.sleep(self.delay_for[employee_id])
        if self.on_read is not None:
            await self.on_read(employee_id)
        return [
            r for r in self.attendance[employee_id] if r.date is None or start <= r.date <= end
        ]

    async def list_approved_leaves(self, employee_id: int, start: date, end: date):
        return [
            lv
            for lv in self.leaves[employee_id]
            if lv.status == "approved" and lv.start_date <= end and lv.end_date >= start
        ]

    async def save_salary_record(self, breakdown: SalaryBreakdown) -> None:
        if self.on_save is not None:
            await self.on_save(breakdown)
        self.save_count += 1
        self.saved[(breakdown.employee_id, breakdown.month, breakdown.year)] = breakdown

    def provider(self) -> StoreProvider:
        @asynccontextmanager
        async def open_store():
            yield self

        return open_store


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def channel() -> RecordingNotificationChannel:
    return RecordingNotificationChannel()


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def manager() -> Caller:
    return Caller(id=1, role="manager", email="manager@example.com")


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions see committed data only."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hrdesk.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def employees(session_factory) -> dict[str, Employee]:
    """John (manager, 5000), Jane (employee, 3000), Bob (developer, 4000)."""
    async with session_factory() as s:
        rows = {
            "john": Employee(
                name="John Manager",
                email="manager@example.com",
                role="manager",
                joining_date=date(2022, 1, 1),
                base_salary=Decimal("5000"),
            ),
            "jane": Employee(
                name="Jane Employee",
                email="employee@example.com",
                role="employee",
                joining_date=date(2022, 2, 15),
                base_salary=Decimal("3000"),
            ),
            "bob": Employee(
                name="Bob Developer",
                email="developer@example.com",
                role="developer",
                joining_date=date(2022, 3, 10),
                base_salary=Decimal("4000"),
            ),
        }
        s.add_all(rows.values())
        await s.commit()
    return rows


@pytest.fixture
async def app(settings, channel, session_factory):
    app = create_app(settings=settings, channel=channel, session_factory=session_factory)
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
