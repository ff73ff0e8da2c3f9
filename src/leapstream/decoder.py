"""Frame decoder: one raw wire message in, one fully linked Frame out.

The decoder is pure. It validates the message against ``leapstream.schema``,
builds every entity, and resolves the in-frame references (pointable -> hand,
gesture -> hands/pointables) against the frame being built. Nothing is shared
between calls.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

from pydantic import ValidationError

from leapstream.entities import Finger, Frame, Hand, InteractionBox, Pointable, Tool, Zone
from leapstream.errors import MalformedMessage, UnknownGestureType
from leapstream.geometry import Matrix, Vector3
from leapstream.gestures import (
    CircleGesture,
    Gesture,
    GestureState,
    KeyTapGesture,
    ScreenTapGesture,
    SwipeGesture,
)
from leapstream.schema import (
    CircleMessage,
    FrameMessage,
    GestureMessage,
    HandMessage,
    KeyTapMessage,
    PointableMessage,
    ScreenTapMessage,
    SwipeMessage,
)

logger = logging.getLogger("leapstream.decoder")


class FrameDecoder:
    """Turns wire messages into Frames.

    Args:
        palm_velocity_from_wire: Read ``palmVelocity`` when the hand element
            carries it. Off by default, in which case palm velocity repeats the
            palm position triple.
        drop_unresolved_gesture_hands: Skip ``handIds`` entries that match no
            hand in the frame. Off by default, which keeps one entry per id
            (None for a miss), unlike ``pointableIds`` where misses are skipped.
    """

    def __init__(
        self,
        palm_velocity_from_wire: bool = False,
        drop_unresolved_gesture_hands: bool = False,
    ):
        self.palm_velocity_from_wire = palm_velocity_from_wire
        self.drop_unresolved_gesture_hands = drop_unresolved_gesture_hands

    def decode(self, raw: Union[str, bytes]) -> Optional[Frame]:
        """Decode one message.

        Returns None when the message is not a frame (no ``timestamp``), e.g.
        the version handshake the service sends on connect.

        Raises:
            MalformedMessage: Not JSON, not an object, or fails validation.
            UnknownGestureType: A gesture ``type`` is not one of the four kinds.
        """
        try:
            data = json.loads(raw)
        except (ValueError, TypeError, RecursionError) as e:
            raise MalformedMessage(f"message is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedMessage(f"expected a JSON object, got {type(data).__name__}")

        if "timestamp" not in data:
            logger.debug("Skipping non-frame message with keys %s", sorted(data))
            return None

        return self.build(self.validate(data))

    @staticmethod
    def validate(data: dict) -> FrameMessage:
        try:
            return FrameMessage.model_validate(data)
        except ValidationError as e:
            for err in e.errors():
                if err["type"] == "union_tag_invalid":
                    raise UnknownGestureType(err.get("ctx", {}).get("tag")) from e
            raise MalformedMessage(
                f"frame message failed validation ({e.error_count()} errors): {e}"
            ) from e

    def build(self, message: FrameMessage) -> Frame:
        """Build and link the entity graph for a validated message."""
        hands = [self._build_hand(h) for h in message.hands]
        hands_by_id: dict[int, Hand] = {}
        for hand in hands:
            hands_by_id.setdefault(hand.id, hand)

        pointables: list[Pointable] = []
        owned: dict[Hand, list[Pointable]] = {hand: [] for hand in hands}
        for pm in message.pointables:
            pointable = self._build_pointable(pm)
            hand = hands_by_id.get(pm.hand_id) if pm.hand_id is not None else None
            pointable.hand = hand
            pointables.append(pointable)
            if hand is not None:
                owned[hand].append(pointable)

        for hand in hands:
            hand.pointables = tuple(owned[hand])
            hand.fingers = tuple(p for p in owned[hand] if p.is_finger)
            hand.tools = tuple(p for p in owned[hand] if p.is_tool)

        pointables_by_id: dict[int, Pointable] = {}
        for pointable in pointables:
            pointables_by_id.setdefault(pointable.id, pointable)

        gestures = [
            self._build_gesture(gm, hands_by_id, pointables_by_id)
            for gm in message.gestures
        ]

        box = None
        if message.interaction_box is not None:
            width, height, depth = message.interaction_box.size
            box = InteractionBox(
                center=Vector3.from_sequence(message.interaction_box.center),
                width=width, height=height, depth=depth,
            )

        frame = Frame(
            id=message.id,
            timestamp=message.timestamp,
            hands=tuple(hands),
            pointables=tuple(pointables),
            fingers=tuple(p for p in pointables if p.is_finger),
            tools=tuple(p for p in pointables if p.is_tool),
            gestures=tuple(gestures),
            rotation=Matrix.from_rows(message.r) if message.r is not None else None,
            translation_vector=Vector3.from_sequence(message.t) if message.t is not None else None,
            scale_factor_number=message.s,
            interaction_box=box,
            current_frames_per_second=message.current_frames_per_second,
        )

        for entity in (*hands, *pointables, *gestures):
            entity.frame = frame
        return frame

    def _build_hand(self, hm: HandMessage) -> Hand:
        if self.palm_velocity_from_wire and hm.palm_velocity is not None:
            palm_velocity = hm.palm_velocity
        else:
            palm_velocity = hm.palm_position

        return Hand(
            id=hm.id,
            direction=Vector3.from_sequence(hm.direction),
            palm_normal=Vector3.from_sequence(hm.palm_normal),
            palm_position=Vector3.from_sequence(hm.palm_position),
            palm_velocity=Vector3.from_sequence(palm_velocity),
            stabilized_palm_position=_optional_vector(hm.stabilized_palm_position),
            rotation=Matrix.from_rows(hm.r),
            scale_factor_number=hm.s,
            sphere_center=Vector3.from_sequence(hm.sphere_center),
            sphere_radius=hm.sphere_radius,
            translation_vector=Vector3.from_sequence(hm.t),
            time_visible=hm.time_visible,
        )

    @staticmethod
    def _build_pointable(pm: PointableMessage) -> Pointable:
        common = dict(
            id=pm.id,
            length=pm.length,
            direction=Vector3.from_sequence(pm.direction),
            tip_position=Vector3.from_sequence(pm.tip_position),
            tip_velocity=Vector3.from_sequence(pm.tip_velocity),
            stabilized_tip_position=_optional_vector(pm.stabilized_tip_position),
            touch_distance=pm.touch_distance,
            touch_zone=Zone.from_wire(pm.touch_zone),
            time_visible=pm.time_visible,
        )
        if pm.tool:
            return Tool(width=pm.width or 0.0, **common)
        return Finger(**common)

    def _build_gesture(
        self,
        gm: GestureMessage,
        hands_by_id: dict[int, Hand],
        pointables_by_id: dict[int, Pointable],
    ) -> Gesture:
        gesture = _GESTURE_BUILDERS[type(gm)](gm)
        gesture.id = gm.id
        gesture.state = GestureState.from_wire(gm.state)
        gesture.duration = gm.duration

        if gm.hand_ids is not None:
            hands = [hands_by_id.get(hid) for hid in gm.hand_ids]
            if self.drop_unresolved_gesture_hands:
                hands = [h for h in hands if h is not None]
            gesture.hands = tuple(hands)

        if gm.pointable_ids is not None:
            gesture.pointables = tuple(
                pointables_by_id[pid] for pid in gm.pointable_ids if pid in pointables_by_id
            )
            if isinstance(gesture, CircleGesture) and gesture.pointables:
                gesture.pointable = gesture.pointables[0]

        return gesture


def _optional_vector(values) -> Optional[Vector3]:
    return Vector3.from_sequence(values) if values is not None else None


def _circle(gm: CircleMessage) -> CircleGesture:
    return CircleGesture(
        center=Vector3.from_sequence(gm.center),
        normal=Vector3.from_sequence(gm.normal),
        progress=gm.progress,
        radius=gm.radius,
    )


def _swipe(gm: SwipeMessage) -> SwipeGesture:
    return SwipeGesture(
        start_position=Vector3.from_sequence(gm.start_position),
        position=Vector3.from_sequence(gm.position),
        direction=Vector3.from_sequence(gm.direction),
        speed=gm.speed,
    )


def _screen_tap(gm: ScreenTapMessage) -> ScreenTapGesture:
    return ScreenTapGesture(
        position=Vector3.from_sequence(gm.position),
        direction=Vector3.from_sequence(gm.direction),
        progress=gm.progress,
    )


def _key_tap(gm: KeyTapMessage) -> KeyTapGesture:
    return KeyTapGesture(
        position=Vector3.from_sequence(gm.position),
        direction=Vector3.from_sequence(gm.direction),
        progress=gm.progress,
    )


_GESTURE_BUILDERS = {
    CircleMessage: _circle,
    SwipeMessage: _swipe,
    ScreenTapMessage: _screen_tap,
    KeyTapMessage: _key_tap,
}

_default_decoder = FrameDecoder()


def decode(raw: Union[str, bytes]) -> Optional[Frame]:
    """Decode with the default decoder settings."""
    return _default_decoder.decode(raw)
