"""Gestures recognised by the tracking service.

Four closed variants share the Gesture base: CircleGesture, SwipeGesture,
ScreenTapGesture and KeyTapGesture. A gesture spans several frames; each frame
reports it again with an updated ``state``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from leapstream.entities import BackRef
from leapstream.geometry import Vector3

if TYPE_CHECKING:
    from leapstream.entities import Hand, Pointable


class GestureState(Enum):
    """Lifecycle state of a gesture as reported in one frame."""
    INVALID = "invalid"
    START = "start"
    UPDATE = "update"
    STOP = "stop"

    @classmethod
    def from_wire(cls, value: Optional[str]) -> GestureState:
        if value in ("start", "update", "stop"):
            return cls(value)
        return cls.INVALID


class GestureType(Enum):
    INVALID = "invalid"
    CIRCLE = "circle"
    SWIPE = "swipe"
    SCREEN_TAP = "screenTap"
    KEY_TAP = "keyTap"


@dataclass(eq=False)
class Gesture:
    """Fields common to every gesture kind.

    ``hands`` and ``pointables`` reference entities of the same frame.
    ``duration`` is in microseconds.
    """
    id: int = 0
    state: GestureState = GestureState.INVALID
    duration: float = 0.0
    hands: tuple[Optional[Hand], ...] = ()
    pointables: tuple[Pointable, ...] = ()

    type: ClassVar[GestureType] = GestureType.INVALID

    frame = BackRef()

    @property
    def duration_seconds(self) -> float:
        return self.duration / 1_000_000

    def is_valid(self) -> bool:
        return bool(self.duration_seconds)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "state": self.state.value,
            "duration": self.duration,
            "hand_ids": [h.id if h is not None else None for h in self.hands],
            "pointable_ids": [p.id for p in self.pointables],
        }


@dataclass(eq=False)
class CircleGesture(Gesture):
    """A finger tracing a circle. ``progress`` counts completed turns."""
    center: Vector3 = field(default_factory=Vector3.zero)
    normal: Vector3 = field(default_factory=Vector3.zero)
    progress: float = 0.0
    radius: float = 0.0
    pointable: Optional[Pointable] = None

    type: ClassVar[GestureType] = GestureType.CIRCLE

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            center=self.center.to_list(),
            normal=self.normal.to_list(),
            progress=self.progress,
            radius=self.radius,
        )
        return data


@dataclass(eq=False)
class SwipeGesture(Gesture):
    start_position: Vector3 = field(default_factory=Vector3.zero)
    position: Vector3 = field(default_factory=Vector3.zero)
    direction: Vector3 = field(default_factory=Vector3.zero)
    speed: float = 0.0

    type: ClassVar[GestureType] = GestureType.SWIPE

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            start_position=self.start_position.to_list(),
            position=self.position.to_list(),
            direction=self.direction.to_list(),
            speed=self.speed,
        )
        return data


@dataclass(eq=False)
class _TapGesture(Gesture):
    position: Vector3 = field(default_factory=Vector3.zero)
    direction: Vector3 = field(default_factory=Vector3.zero)
    progress: float = 0.0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            position=self.position.to_list(),
            direction=self.direction.to_list(),
            progress=self.progress,
        )
        return data


@dataclass(eq=False)
class ScreenTapGesture(_TapGesture):
    """A forward poke towards the screen."""
    type: ClassVar[GestureType] = GestureType.SCREEN_TAP


@dataclass(eq=False)
class KeyTapGesture(_TapGesture):
    """A downward tap, like pressing a key."""
    type: ClassVar[GestureType] = GestureType.KEY_TAP
