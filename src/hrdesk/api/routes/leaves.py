"""Leave request endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from hrdesk.api.dependencies import CurrentCaller, Leaves, ManagerCaller
from hrdesk.api.schemas import ErrorResponse, LeaveCreate, LeaveDecision, LeaveResponse

router = APIRouter(prefix="/leaves", tags=["leaves"])


@router.get("", response_model=list[LeaveResponse])
async def list_leaves(service: Leaves, caller: ManagerCaller) -> list[LeaveResponse]:
    return [LeaveResponse.model_validate(lv) for lv in await service.list_all()]


@router.get("/employee/{employee_id}", response_model=list[LeaveResponse])
async def list_employee_leaves(
    service: Leaves,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
) -> list[LeaveResponse]:
    caller.require_self_or_manager(employee_id)
    return [LeaveResponse.model_validate(lv) for lv in await service.list_for_employee(employee_id)]


@router.post(
    "",
    response_model=LeaveResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def request_leave(
    service: Leaves,
    caller: CurrentCaller,
    payload: LeaveCreate,
) -> LeaveResponse:
    """File a pending leave request."""
    leave = await service.request_leave(
        caller,
        employee_id=payload.employee_id,
        leave_type=payload.type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    return LeaveResponse.model_validate(leave)


@router.put(
    "/{leave_id}",
    response_model=LeaveResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def decide_leave(
    service: Leaves,
    caller: ManagerCaller,
    leave_id: Annotated[int, Path()],
    payload: LeaveDecision,
) -> LeaveResponse:
    """Approve or reject a pending request. Decided requests are final."""
    leave = await service.decide(leave_id, payload.status, caller)
    return LeaveResponse.model_validate(leave)
