"""Attendance endpoints: check-in/out for the caller, manager entry and edits."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from hrdesk.api.dependencies import Attendance, CurrentCaller, ManagerCaller
from hrdesk.api.schemas import (
    AttendanceCreate,
    AttendanceResponse,
    AttendanceUpdate,
    CheckOutResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("", response_model=list[AttendanceResponse])
async def list_attendance(service: Attendance, caller: ManagerCaller) -> list[AttendanceResponse]:
    records = await service.list_all()
    return [AttendanceResponse.model_validate(r) for r in records]


@router.get("/employee/{employee_id}", response_model=list[AttendanceResponse])
async def list_employee_attendance(
    service: Attendance,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
) -> list[AttendanceResponse]:
    caller.require_self_or_manager(employee_id)
    records = await service.list_for_employee(employee_id)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.post(
    "/check-in",
    response_model=AttendanceResponse,
    responses={409: {"model": ErrorResponse}},
)
async def check_in(service: Attendance, caller: CurrentCaller) -> AttendanceResponse:
    """Check the caller in for today; ``late`` after the workday start."""
    record = await service.check_in(caller)
    return AttendanceResponse.model_validate(record)


@router.post(
    "/check-out",
    response_model=CheckOutResponse,
    responses={409: {"model": ErrorResponse}},
)
async def check_out(service: Attendance, caller: CurrentCaller) -> CheckOutResponse:
    """Check the caller out for today.

    Without a check-in the call still succeeds and ``warning`` says so.
    """
    result = await service.check_out(caller)
    return CheckOutResponse(
        record=AttendanceResponse.model_validate(result.record),
        warning=result.warning,
    )


@router.post(
    "",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_attendance(
    service: Attendance,
    caller: ManagerCaller,
    payload: AttendanceCreate,
) -> AttendanceResponse:
    record = await service.create_record(
        caller,
        employee_id=payload.employee_id,
        day=payload.date,
        status=payload.status,
        overtime_hours=payload.overtime_hours,
        check_in_time=payload.check_in_time,
        check_out_time=payload.check_out_time,
    )
    return AttendanceResponse.model_validate(record)


@router.put(
    "/{record_id}",
    response_model=AttendanceResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_attendance(
    service: Attendance,
    caller: ManagerCaller,
    record_id: Annotated[int, Path()],
    payload: AttendanceUpdate,
) -> AttendanceResponse:
    record = await service.update_record(
        caller, record_id, payload.model_dump(exclude_unset=True)
    )
    return AttendanceResponse.model_validate(record)
