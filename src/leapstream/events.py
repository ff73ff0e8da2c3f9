"""Controller notifications: event types, the dispatcher and the Listener base.

Handlers subscribe per event type and are called synchronously, in the order
they subscribed. A failing handler is logged and skipped; the rest still run.

Callback style:
    controller.subscribe(EventType.FRAME, lambda event: print(event.frame.id))

Listener style:
    class Printer(Listener):
        def on_frame(self, controller, frame):
            print(frame.id)

    controller.add_listener(Printer())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from leapstream.controller import Controller
    from leapstream.entities import Frame
    from leapstream.errors import DecodeError

logger = logging.getLogger("leapstream.events")


class EventType(str, Enum):
    INIT = "init"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    EXIT = "exit"
    FRAME = "frame"
    ERROR = "error"


@dataclass
class ControllerEvent:
    """Event passed to handlers."""
    type: str  # an EventType value
    target: Any  # the publishing controller
    frame: Optional[Frame] = None
    error: Optional[DecodeError] = None


Handler = Callable[[ControllerEvent], None]


class EventDispatcher:
    """Typed publish/subscribe registry, one per controller."""

    def __init__(self):
        self._subscriptions: list[tuple[str, Handler]] = []
        self.handler_errors = 0

    def subscribe(self, event_type: str, handler: Handler):
        """Register ``handler``; registering the same pair twice is a no-op."""
        if self.has_subscriber(event_type, handler):
            return
        self._subscriptions.append((event_type, handler))

    def unsubscribe(self, event_type: str, handler: Handler):
        """Remove every matching registration. Unknown pairs are ignored."""
        self._subscriptions = [
            (t, h) for t, h in self._subscriptions
            if not (t == event_type and h == handler)
        ]

    def has_subscriber(self, event_type: str, handler: Handler) -> bool:
        return any(t == event_type and h == handler for t, h in self._subscriptions)

    def subscribers(self, event_type: str) -> list[Handler]:
        return [h for t, h in self._subscriptions if t == event_type]

    def publish(self, event: ControllerEvent) -> int:
        """Deliver ``event`` to its subscribers. Returns how many ran cleanly."""
        delivered = 0
        for handler in self.subscribers(event.type):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                self.handler_errors += 1
                logger.error(
                    "Handler %s failed on %s event: %s",
                    getattr(handler, "__qualname__", repr(handler)), _type_name(event.type), e,
                )
        return delivered

    def clear(self):
        self._subscriptions.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)


def _type_name(event_type) -> str:
    return event_type.value if isinstance(event_type, EventType) else str(event_type)


class Listener:
    """Base class for objects that want every controller notification.

    Override the callbacks you care about and pass the instance to
    ``Controller.add_listener``.
    """

    def on_init(self, controller: Controller):
        """Called once the controller is initialised, or when added to one that is."""

    def on_connect(self, controller: Controller):
        """Called when the device connection opens, or when added while connected."""

    def on_disconnect(self, controller: Controller):
        """Called when the device connection closes."""

    def on_exit(self, controller: Controller):
        """Called when removed from the controller or the controller closes."""

    def on_frame(self, controller: Controller, frame: Frame):
        """Called for every new frame. ``controller.frame()`` returns the same frame."""

    def on_error(self, controller: Controller, error: DecodeError):
        """Called when a wire message could not be decoded."""

    def handle_event(self, event: ControllerEvent):
        event_type = _type_name(event.type)
        if event_type == EventType.FRAME:
            self.on_frame(event.target, event.frame)
        elif event_type == EventType.ERROR:
            self.on_error(event.target, event.error)
        elif event_type == EventType.CONNECTED:
            self.on_connect(event.target)
        elif event_type == EventType.DISCONNECTED:
            self.on_disconnect(event.target)
        elif event_type == EventType.INIT:
            self.on_init(event.target)
        elif event_type == EventType.EXIT:
            self.on_exit(event.target)
