"""WebSocket transport for live notifications."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket

from hrdesk.notifications.channel import (
    ATTENDANCE_UPDATE,
    ATTENDANCE_UPDATED,
    PERFORMANCE_UPDATE,
    PERFORMANCE_UPDATED,
    REFRESH_DATA,
    SALARY_UPDATED,
    NotificationChannel,
    role_room,
    user_room,
)

logger = logging.getLogger(__name__)

# Client-originated events re-sent to the addressed employee under a new name
CLIENT_RELAYS: dict[str, str] = {
    PERFORMANCE_UPDATE: PERFORMANCE_UPDATED,
    ATTENDANCE_UPDATE: ATTENDANCE_UPDATED,
    "salary_update": SALARY_UPDATED,
}
GLOBAL_UPDATE = "global_update"


class WebSocketNotificationChannel(NotificationChannel):
    """Tracks open WebSocket connections by room.

    Every connection joins ``user-<id>`` and the room of its role. Sends are
    scheduled as tasks so callers never wait on the network.
    """

    def __init__(self) -> None:
        super().__init__()
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    async def connect(self, websocket: WebSocket, employee_id: int, role: str) -> None:
        """Accept a connection and register it in its rooms."""
        await websocket.accept()
        async with self._lock:
            self._rooms[user_room(employee_id)].add(websocket)
            self._rooms[role_room(role)].add(websocket)
        logger.info("Client connected: employee=%s role=%s", employee_id, role)

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection from every room it is in."""
        async with self._lock:
            for room in list(self._rooms):
                self._rooms[room].discard(websocket)
                if not self._rooms[room]:
                    del self._rooms[room]

    def connection_count(self, room: str | None = None) -> int:
        if room is not None:
            return len(self._rooms.get(room, ()))
        return len(set().union(*self._rooms.values())) if self._rooms else 0

    def notify_employee(self, employee_id: int, event_name: str, payload: Any) -> None:
        self.notify_room(user_room(employee_id), event_name, payload)

    def notify_room(self, room: str, event_name: str, payload: Any) -> None:
        targets = list(self._rooms.get(room, ()))
        if not targets:
            logger.debug("Dropping %s for %s: no connection", event_name, room)
            return
        self._schedule(targets, event_name, payload)

    def broadcast(self, event_name: str, payload: Any) -> None:
        targets = list(set().union(*self._rooms.values())) if self._rooms else []
        if not targets:
            logger.debug("Dropping broadcast %s: no connections", event_name)
            return
        self._schedule(targets, event_name, payload)

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule(self, targets: list[WebSocket], event_name: str, payload: Any) -> None:
        message = {"event": event_name, "data": payload}
        task = asyncio.create_task(self._send(targets, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, targets: list[WebSocket], message: dict[str, Any]) -> None:
        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_json(message)
            except Exception:
                logger.debug("Send of %s failed; dropping connection", message["event"])
                stale.append(websocket)
        for websocket in stale:
            await self.disconnect(websocket)

    async def handle_client_message(self, message: dict[str, Any]) -> None:
        """Relay an event a client pushed over its socket.

        ``{"event": "attendance_update", "data": {"employee_id": 3, ...}}`` is
        re-sent to that employee as ``attendance_updated``;
        ``global_update`` becomes a ``refresh_data`` broadcast.
        """
        event_name = message.get("event")
        data = message.get("data")

        if event_name == GLOBAL_UPDATE:
            self.broadcast(REFRESH_DATA, data)
            return

        relay_name = CLIENT_RELAYS.get(event_name or "")
        if relay_name is None:
            logger.debug("Ignoring unknown client event %r", event_name)
            return
        employee_id = data.get("employee_id") if isinstance(data, dict) else None
        if employee_id is None:
            logger.debug("Ignoring %s without employee_id", event_name)
            return
        self.notify_employee(employee_id, relay_name, data)
