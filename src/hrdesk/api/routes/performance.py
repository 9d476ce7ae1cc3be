"""Performance review endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status
from sqlalchemy import select

from hrdesk.api.dependencies import Channel, CurrentCaller, DbSession, ManagerCaller
from hrdesk.api.schemas import (
    ErrorResponse,
    PerformanceCreate,
    PerformanceResponse,
    PerformanceUpdate,
)
from hrdesk.exceptions import EmployeeNotFound, RecordNotFound
from hrdesk.models import Employee, PerformanceReview
from hrdesk.notifications.channel import (
    PERFORMANCE_UPDATE,
    PERFORMANCE_UPDATED,
    NotificationChannel,
)
from hrdesk.notifications.events import EventMetadata, PerformanceChanged
from hrdesk.services.caller import Caller

router = APIRouter(prefix="/performance", tags=["performance"])


async def _announce(channel: NotificationChannel, review: PerformanceReview, caller: Caller) -> None:
    await channel.publish(
        PerformanceChanged(
            metadata=EventMetadata.create(actor_id=caller.id, actor_role=caller.role),
            employee_id=review.employee_id,
            review_id=review.id,
        )
    )
    payload = review.to_dict()
    channel.broadcast(PERFORMANCE_UPDATE, payload)
    channel.notify_employee(review.employee_id, PERFORMANCE_UPDATED, payload)


@router.get("", response_model=list[PerformanceResponse])
async def list_reviews(db: DbSession, caller: ManagerCaller) -> list[PerformanceResponse]:
    result = await db.execute(select(PerformanceReview).order_by(PerformanceReview.review_date.desc()))
    return [PerformanceResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/employee/{employee_id}", response_model=list[PerformanceResponse])
async def list_employee_reviews(
    db: DbSession,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
) -> list[PerformanceResponse]:
    caller.require_self_or_manager(employee_id)
    result = await db.execute(
        select(PerformanceReview)
        .where(PerformanceReview.employee_id == employee_id)
        .order_by(PerformanceReview.review_date.desc())
    )
    return [PerformanceResponse.model_validate(r) for r in result.scalars().all()]


@router.post(
    "",
    response_model=PerformanceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_review(
    db: DbSession,
    channel: Channel,
    caller: ManagerCaller,
    payload: PerformanceCreate,
) -> PerformanceResponse:
    if await db.get(Employee, payload.employee_id) is None:
        raise EmployeeNotFound(payload.employee_id)
    review = PerformanceReview(**payload.model_dump())
    db.add(review)
    await db.commit()
    await _announce(channel, review, caller)
    return PerformanceResponse.model_validate(review)


@router.put(
    "/{review_id}",
    response_model=PerformanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_review(
    db: DbSession,
    channel: Channel,
    caller: ManagerCaller,
    review_id: Annotated[int, Path()],
    payload: PerformanceUpdate,
) -> PerformanceResponse:
    review = await db.get(PerformanceReview, review_id)
    if review is None:
        raise RecordNotFound("Performance review", review_id)
    for name, value in payload.model_dump(exclude_unset=True).items():
        setattr(review, name, value)
    await db.commit()
    await _announce(channel, review, caller)
    return PerformanceResponse.model_validate(review)
