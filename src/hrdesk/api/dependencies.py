"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.config import Settings
from hrdesk.notifications.channel import NotificationChannel
from hrdesk.services.attendance_service import AttendanceService
from hrdesk.services.caller import Caller
from hrdesk.services.employee_service import EmployeeService
from hrdesk.services.leave_service import LeaveService
from hrdesk.services.salary_service import SalaryOrchestrator

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """Decode a bearer token issued by the authentication service."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def caller_from_token(token: str, settings: Settings) -> Caller:
    """Resolve caller claims; raises ``jwt.PyJWTError`` on any bad token."""
    claims = decode_access_token(token, settings)
    try:
        return Caller.from_claims(claims)
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token is missing caller claims") from exc


async def get_current_caller(
    settings: Annotated[Settings, Depends(get_settings_dep)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Caller:
    """Caller identity from the ``Authorization: Bearer <jwt>`` header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        return caller_from_token(credentials.credentials, settings)
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from exc


async def require_manager(
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> Caller:
    """Caller dependency for manager-only routes."""
    caller.require_manager()
    return caller


def get_channel(request: Request) -> NotificationChannel:
    return request.app.state.channel


def get_orchestrator(request: Request) -> SalaryOrchestrator:
    return request.app.state.orchestrator


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
ManagerCaller = Annotated[Caller, Depends(require_manager)]
Channel = Annotated[NotificationChannel, Depends(get_channel)]
Orchestrator = Annotated[SalaryOrchestrator, Depends(get_orchestrator)]
AppSettings = Annotated[Settings, Depends(get_settings_dep)]


def get_attendance_service(
    request: Request, db: DbSession, channel: Channel, settings: AppSettings
) -> AttendanceService:
    return AttendanceService(db, channel, request.app.state.attendance_locks, settings)


def get_leave_service(db: DbSession, channel: Channel) -> LeaveService:
    return LeaveService(db, channel)


def get_employee_service(db: DbSession, channel: Channel) -> EmployeeService:
    return EmployeeService(db, channel)


Attendance = Annotated[AttendanceService, Depends(get_attendance_service)]
Leaves = Annotated[LeaveService, Depends(get_leave_service)]
Employees = Annotated[EmployeeService, Depends(get_employee_service)]
