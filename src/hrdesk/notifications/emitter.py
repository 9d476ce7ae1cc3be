"""Async event emitter for inbound change events.

Handlers are isolated: one failing handler never stops the others, and the
failure is logged and returned to the publisher.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from hrdesk.notifications.events import DomainEvent

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DomainEvent)

AsyncEventHandler = Callable[[Any], Awaitable[None]]


@dataclass
class HandlerRegistration:
    """Registration of an event handler."""

    handler: AsyncEventHandler
    event_types: set[str]


class AsyncEventEmitter:
    """Routes events to handlers by type.

    Usage:
        emitter = AsyncEventEmitter()

        async def on_attendance(event: AttendanceChanged) -> None:
            ...

        emitter.on(AttendanceChanged, on_attendance)
        await emitter.emit(event)
    """

    def __init__(self) -> None:
        self._handlers: list[HandlerRegistration] = []

    def on(
        self,
        event_type: type[T] | list[type[T]],
        handler: AsyncEventHandler,
    ) -> None:
        """Register async handler for specific event type(s)."""
        self._handlers.append(
            HandlerRegistration(handler=handler, event_types=_type_names(event_type))
        )

    def off(self, handler: AsyncEventHandler) -> None:
        """Unregister a handler."""
        # == so that bound methods fetched twice still match
        self._handlers = [reg for reg in self._handlers if reg.handler != handler]

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    async def emit(self, event: DomainEvent) -> list[Exception]:
        """Emit an event to all matching handlers.

        Returns list of any exceptions raised by handlers.
        """
        tasks = [
            asyncio.create_task(self._call_handler(reg.handler, event))
            for reg in list(self._handlers)
            if event.event_type in reg.event_types
        ]
        if not tasks:
            return []

        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [result for result in results if isinstance(result, Exception)]

    async def _call_handler(
        self,
        handler: AsyncEventHandler,
        event: DomainEvent,
    ) -> None:
        """Call handler with error logging."""
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "Handler %s failed for event %s",
                handler,
                event.event_type,
            )
            raise


def _type_names(event_type: type[DomainEvent] | list[type[DomainEvent]]) -> set[str]:
    if isinstance(event_type, list):
        return {t.__name__ for t in event_type}
    return {event_type.__name__}
