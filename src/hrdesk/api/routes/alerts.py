"""Alert endpoints. An alert targets one employee id or ``"all"``."""

from typing import Annotated

from fastapi import APIRouter, Path, status
from sqlalchemy import or_, select

from hrdesk.api.dependencies import Channel, CurrentCaller, DbSession, ManagerCaller
from hrdesk.api.schemas import AlertCreate, AlertResponse, ErrorResponse, MessageResponse
from hrdesk.exceptions import InvalidInput, RecordNotFound
from hrdesk.models import Alert
from hrdesk.notifications.channel import ALERT_RECEIVED, REFRESH_DATA
from hrdesk.notifications.events import AlertRaised, EventMetadata

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertResponse])
async def list_alerts(db: DbSession, caller: ManagerCaller) -> list[AlertResponse]:
    result = await db.execute(select(Alert).order_by(Alert.date.desc(), Alert.id.desc()))
    return [AlertResponse.model_validate(a) for a in result.scalars().all()]


@router.get("/employee/{employee_id}", response_model=list[AlertResponse])
async def list_employee_alerts(
    db: DbSession,
    caller: CurrentCaller,
    employee_id: Annotated[int, Path()],
) -> list[AlertResponse]:
    """Alerts addressed to the employee plus those sent to everyone."""
    caller.require_self_or_manager(employee_id)
    result = await db.execute(
        select(Alert)
        .where(or_(Alert.employee_id == str(employee_id), Alert.employee_id == Alert.ALL))
        .order_by(Alert.date.desc(), Alert.id.desc())
    )
    return [AlertResponse.model_validate(a) for a in result.scalars().all()]


@router.post(
    "",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_alert(
    db: DbSession,
    channel: Channel,
    caller: ManagerCaller,
    payload: AlertCreate,
) -> AlertResponse:
    if payload.employee_id != Alert.ALL and not payload.employee_id.isdigit():
        raise InvalidInput(f"Alert target must be an employee id or 'all', got {payload.employee_id!r}")

    alert = Alert(**payload.model_dump())
    db.add(alert)
    await db.commit()

    await channel.publish(
        AlertRaised(
            metadata=EventMetadata.create(actor_id=caller.id, actor_role=caller.role),
            alert_id=alert.id,
            employee_id=alert.employee_id,
        )
    )
    channel.broadcast(REFRESH_DATA, "alerts")
    if alert.is_broadcast:
        channel.broadcast(ALERT_RECEIVED, alert.to_dict())
    else:
        channel.notify_employee(int(alert.employee_id), ALERT_RECEIVED, alert.to_dict())
    return AlertResponse.model_validate(alert)


@router.delete(
    "/{alert_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_alert(
    db: DbSession,
    channel: Channel,
    caller: ManagerCaller,
    alert_id: Annotated[int, Path()],
) -> MessageResponse:
    alert = await db.get(Alert, alert_id)
    if alert is None:
        raise RecordNotFound("Alert", alert_id)
    await db.delete(alert)
    await db.commit()
    channel.broadcast(REFRESH_DATA, "alerts")
    return MessageResponse(message="Alert deleted successfully")
