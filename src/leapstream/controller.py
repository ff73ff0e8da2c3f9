"""Controller: the main interface to the tracking stream.

The transport hands every raw message to ``handle_message``. The controller
decodes it, keeps the newest frame plus a bounded history of the frames before
it, and notifies subscribers.

Usage:
    controller = Controller()
    controller.subscribe(EventType.FRAME, lambda event: print(event.frame.id))

    # From the transport:
    controller.handle_message(raw_text)

    # Polling:
    latest = controller.frame()
    previous = controller.frame(1)
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, Iterator, Optional, Union

from leapstream.decoder import FrameDecoder
from leapstream.entities import Frame
from leapstream.errors import DecodeError
from leapstream.events import ControllerEvent, EventDispatcher, EventType, Handler, Listener
from leapstream.history import DEFAULT_HISTORY_SIZE, FrameHistory
from leapstream.metrics import MetricsCollector

logger = logging.getLogger("leapstream.controller")

_LISTENER_EVENTS = tuple(EventType)


class Controller:
    """Decoder, frame history and dispatcher behind one façade.

    The newest frame lives in its own slot. When a new frame arrives the
    previous newest one moves into history, so ``frame(0)`` is the newest
    frame and ``frame(n)`` for n >= 1 is ``history.get(n - 1)``. Ages above
    ``max_age`` always give the invalid frame.

    Not thread-safe: call ``handle_message`` and ``frame`` from one thread.
    """

    def __init__(
        self,
        decoder: Optional[FrameDecoder] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.decoder = decoder or FrameDecoder()
        self.history = FrameHistory(history_size)
        self.dispatcher = EventDispatcher()
        self.metrics = metrics or MetricsCollector()
        self._latest: Optional[Frame] = None
        self._initialized = False
        self._connected = False
        self._closed = False
        self._gestures_enabled = False
        self._send: Optional[Callable[[str], None]] = None

    @property
    def max_age(self) -> int:
        return self.history.capacity - 1

    # --- Inbound messages ---

    def handle_message(self, raw: Union[str, bytes]) -> Optional[Frame]:
        """Decode one wire message and publish the resulting frame.

        Returns the new frame, or None for non-frame messages. A message that
        fails to decode leaves all state untouched, is published as an
        ``error`` event, and the DecodeError is re-raised.
        """
        t_start = time.perf_counter()
        try:
            frame = self.decoder.decode(raw)
        except DecodeError as e:
            self.metrics.record_error(e.kind)
            logger.warning("Dropping undecodable message: %s", e)
            self._publish(EventType.ERROR, error=e)
            raise

        if frame is None:
            self.metrics.record_skip()
            return None

        frame.controller = self
        if self._latest is not None:
            self.history.push(self._latest)
        self._latest = frame

        self.metrics.record_frame(
            time.perf_counter() - t_start,
            hands=len(frame.hands),
            pointables=len(frame.pointables),
            gesture_types=[g.type.value for g in frame.gestures],
        )
        self.metrics.set_history_frames(len(self.history))
        self._publish(EventType.FRAME, frame=frame)
        return frame

    # --- Frame access ---

    def frame(self, age: int = 0) -> Frame:
        """Frame ``age`` steps back from the newest (0), up to ``max_age``.

        Never raises: ages with no stored frame give the invalid frame.
        """
        if age < 0 or age > self.max_age:
            return Frame.invalid()
        if age == 0:
            return self._latest if self._latest is not None else Frame.invalid()
        return self.history.get(age - 1)

    def frames(self) -> Iterator[Frame]:
        """Every reachable frame, newest first."""
        if self._latest is None:
            return
        yield self._latest
        for age in range(1, min(len(self.history), self.max_age) + 1):
            yield self.history.get(age - 1)

    # --- Subscriptions ---

    def subscribe(self, event_type: str, handler: Handler):
        self.dispatcher.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Handler):
        self.dispatcher.unsubscribe(event_type, handler)

    def add_listener(self, listener: Listener):
        """Subscribe a Listener to every event type.

        The listener immediately gets ``on_init`` if the controller is already
        initialised, and ``on_connect`` if it is already connected.
        """
        for event_type in _LISTENER_EVENTS:
            self.dispatcher.subscribe(event_type, listener.handle_event)
        if self._initialized:
            listener.on_init(self)
        if self._connected:
            listener.on_connect(self)

    def remove_listener(self, listener: Listener):
        for event_type in _LISTENER_EVENTS:
            self.dispatcher.unsubscribe(event_type, listener.handle_event)
        listener.on_exit(self)

    # --- Connection lifecycle (driven by the transport) ---

    def initialize(self):
        if self._initialized:
            return
        self._initialized = True
        self._publish(EventType.INIT)

    def connection_opened(self, send: Optional[Callable[[str], None]] = None):
        """The transport connected. ``send`` delivers control messages to the device."""
        self._connected = True
        self._send = send
        self.metrics.set_connected(True)
        logger.info("Connected to tracking service")
        if self._gestures_enabled:
            self._send_control({"enableGestures": True})
        self._publish(EventType.CONNECTED)

    def connection_closed(self):
        was_connected = self._connected
        self._connected = False
        self._send = None
        self.metrics.set_connected(False)
        if was_connected:
            logger.info("Disconnected from tracking service")
            self._publish(EventType.DISCONNECTED)

    def close(self):
        """Publish ``exit`` to every subscriber. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self.connection_closed()
        self._publish(EventType.EXIT)

    @property
    def is_connected(self) -> bool:
        return self._connected

    # --- Device settings ---

    def enable_gestures(self, enable: bool = True):
        """Turn gesture reporting on or off. Replayed on every (re)connect."""
        self._gestures_enabled = enable
        if self._connected:
            self._send_control({"enableGestures": enable})

    @property
    def gestures_enabled(self) -> bool:
        return self._gestures_enabled

    # --- Internals ---

    def _send_control(self, message: dict):
        if self._send is None:
            logger.debug("No transport to send %s", message)
            return
        self._send(json.dumps(message))

    def _publish(self, event_type: EventType, **kwargs):
        self.dispatcher.publish(ControllerEvent(type=event_type, target=self, **kwargs))
        self.metrics.set_handler_errors(self.dispatcher.handler_errors)
