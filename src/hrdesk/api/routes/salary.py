"""Salary endpoints: monthly run, on-demand breakdown, persisted records."""

from typing import Annotated

from fastapi import APIRouter, Path, Query
from sqlalchemy import select

from hrdesk.api.dependencies import CurrentCaller, DbSession, ManagerCaller, Orchestrator
from hrdesk.api.schemas import (
    ErrorResponse,
    RunResultResponse,
    SalaryBreakdownResponse,
    SalaryCalculateRequest,
    SalaryRecordResponse,
)
from hrdesk.models import SalaryRecord

router = APIRouter(prefix="/salary", tags=["salary"])

Month = Annotated[int, Query(ge=1, le=12)]
Year = Annotated[int, Query(ge=1, le=9999)]


@router.post(
    "/calculate",
    response_model=RunResultResponse,
    responses={409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def calculate_salaries(
    orchestrator: Orchestrator,
    caller: ManagerCaller,
    payload: SalaryCalculateRequest,
) -> RunResultResponse:
    """Run the salary calculation for every employee.

    Employees that failed are listed in ``failed``; the run still completes.
    """
    result = await orchestrator.run_monthly_calculation(payload.month, payload.year, caller)
    return RunResultResponse.model_validate(result.to_dict())


@router.get("/records", response_model=list[SalaryRecordResponse])
async def list_salary_records(
    db: DbSession,
    caller: CurrentCaller,
    month: Month,
    year: Year,
) -> list[SalaryRecordResponse]:
    """Persisted results of the last run; employees only see their own."""
    query = select(SalaryRecord).where(SalaryRecord.month == month, SalaryRecord.year == year)
    if not caller.is_manager:
        query = query.where(SalaryRecord.employee_id == caller.id)
    result = await db.execute(query.order_by(SalaryRecord.employee_id))
    return [SalaryRecordResponse.model_validate(r) for r in result.scalars().all()]


@router.get(
    "/{employee_id}",
    response_model=SalaryBreakdownResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def get_salary_breakdown(
    orchestrator: Orchestrator,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
    month: Month,
    year: Year,
) -> SalaryBreakdownResponse:
    """Compute one employee's breakdown now, without saving it."""
    caller.require_self_or_manager(employee_id)
    breakdown = await orchestrator.compute_salary_on_demand(employee_id, month, year, caller)
    return SalaryBreakdownResponse.model_validate(breakdown)
