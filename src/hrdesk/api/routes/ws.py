"""Live-update WebSocket endpoint."""

import logging

import jwt
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from hrdesk.api.dependencies import caller_from_token
from hrdesk.notifications.channel import NotificationChannel
from hrdesk.notifications.websocket import WebSocketNotificationChannel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str) -> None:
    """Authenticate the client, join its rooms and relay its events."""
    settings = websocket.app.state.settings
    channel: NotificationChannel = websocket.app.state.channel

    try:
        caller = caller_from_token(token, settings)
    except jwt.PyJWTError:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Invalid or expired token",
        )
        return

    if not isinstance(channel, WebSocketNotificationChannel):
        await websocket.close(
            code=status.WS_1011_INTERNAL_ERROR,
            reason="Live updates are disabled",
        )
        return

    await channel.connect(websocket, caller.id, caller.role)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, KeyError):
                # Not a JSON text frame
                logger.debug("Ignoring malformed frame from %s", caller)
                continue
            if isinstance(message, dict):
                await channel.handle_client_message(message)
    except WebSocketDisconnect:
        logger.debug("Client %s disconnected", caller)
    finally:
        await channel.disconnect(websocket)
