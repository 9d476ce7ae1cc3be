"""Employee endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from hrdesk.api.dependencies import CurrentCaller, Employees, ManagerCaller
from hrdesk.api.schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ErrorResponse,
    MessageResponse,
)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeResponse])
async def list_employees(service: Employees, caller: CurrentCaller) -> list[EmployeeResponse]:
    employees = await service.list_employees()
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee(
    service: Employees,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
) -> EmployeeResponse:
    caller.require_self_or_manager(employee_id)
    return EmployeeResponse.model_validate(await service.get(employee_id))


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_employee(
    service: Employees,
    caller: ManagerCaller,
    payload: EmployeeCreate,
) -> EmployeeResponse:
    """Create an employee and tell clients to refresh their lists."""
    employee = await service.create(caller, **payload.model_dump(mode="python"))
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_employee(
    service: Employees,
    caller: ManagerCaller,
    employee_id: Annotated[int, Path()],
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    employee = await service.update(caller, employee_id, payload.model_dump(exclude_unset=True))
    return EmployeeResponse.model_validate(employee)


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_employee(
    service: Employees,
    caller: ManagerCaller,
    employee_id: Annotated[int, Path()],
) -> MessageResponse:
    """Delete an employee and every record that belongs to them."""
    await service.delete(caller, employee_id)
    return MessageResponse(message="Employee deleted successfully")
