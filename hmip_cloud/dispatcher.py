"""
HandlerRegistry — subscriber registrations and ordered event dispatch.

This is a pure asyncio primitive with no network dependencies.
"""
from __future__ import annotations

import dataclasses
import inspect
import logging

from .models import Event, EventHandler, Origin, PushMessage

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class HandlerRegistration:
    """A callback plus the event types it wants; an empty set matches all."""

    handler: EventHandler
    event_types: frozenset[str] = frozenset()

    def matches(self, event_type: str) -> bool:
        return not self.event_types or event_type in self.event_types


class HandlerRegistry:
    """
    Stores handler registrations and invokes them for each incoming event.

    Handlers run one at a time, in registration order, on the task that
    reads the websocket. A slow handler therefore delays every later handler
    and the next frame; decouple with your own queue if that matters.
    """

    def __init__(self) -> None:
        self._registrations: list[HandlerRegistration] = []

    def register(self, handler: EventHandler, *event_types: str) -> HandlerRegistration:
        """
        Append a registration. No de-duplication; registrations live as long
        as the registry.
        """
        registration = HandlerRegistration(handler, frozenset(event_types))
        self._registrations.append(registration)
        return registration

    @property
    def registrations(self) -> tuple[HandlerRegistration, ...]:
        return tuple(self._registrations)

    async def dispatch(self, message: PushMessage) -> None:
        """Deliver every event of message to every matching handler."""
        for event in message.events:
            await self.dispatch_event(event, message.origin)

    async def dispatch_event(self, event: Event, origin: Origin) -> None:
        for registration in list(self._registrations):
            if not registration.matches(event.type):
                continue
            try:
                result = registration.handler(event, origin)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                _LOGGER.exception(
                    "Event handler %r failed for %s event", registration.handler, event.type
                )
