"""Tracking entities: frames, hands and pointables (fingers and tools).

A Frame owns its hands, pointables and gestures. Parent links pointing back up
the graph (``Hand.frame``, ``Pointable.hand``, ``Frame.controller``...) are
weak, so dropping a frame releases everything it owns.
"""

from __future__ import annotations

import math
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

import numpy as np

from leapstream.geometry import Matrix, Vector3

if TYPE_CHECKING:
    from leapstream.controller import Controller
    from leapstream.gestures import Gesture


class BackRef:
    """Non-owning link from a child entity to its parent."""

    def __set_name__(self, owner, name):
        self._attr = f"_{name}_ref"

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        ref = obj.__dict__.get(self._attr)
        return ref() if ref is not None else None

    def __set__(self, obj, value):
        obj.__dict__[self._attr] = weakref.ref(value) if value is not None else None


def _find(items, id: int):
    for item in items:
        if item.id == id:
            return item
    return None


class Zone(Enum):
    """Proximity of a pointable to the virtual touch plane."""
    NONE = "none"
    HOVERING = "hovering"
    TOUCHING = "touching"

    @classmethod
    def from_wire(cls, value: Optional[str]) -> Zone:
        if value in ("hovering", "touching"):
            return cls(value)
        return cls.NONE


@dataclass(eq=False)
class Pointable:
    """A tracked finger or tool. Use Finger/Tool; this base is never decoded."""
    id: int = 0
    length: float = 0.0
    direction: Vector3 = field(default_factory=Vector3.invalid)
    tip_position: Vector3 = field(default_factory=Vector3.invalid)
    tip_velocity: Vector3 = field(default_factory=Vector3.invalid)
    stabilized_tip_position: Optional[Vector3] = None
    touch_distance: Optional[float] = None
    touch_zone: Zone = Zone.NONE
    time_visible: Optional[float] = None

    is_tool: ClassVar[bool] = False
    is_finger: ClassVar[bool] = False

    hand = BackRef()
    frame = BackRef()

    @property
    def width(self) -> float:
        return 0.0

    def is_valid(self) -> bool:
        return (
            self.direction.is_valid()
            and self.tip_position.is_valid()
            and self.tip_velocity.is_valid()
        )

    def to_dict(self) -> dict:
        hand = self.hand
        return {
            "id": self.id,
            "hand_id": hand.id if hand is not None else None,
            "tool": self.is_tool,
            "length": self.length,
            "width": self.width,
            "direction": self.direction.to_list(),
            "tip_position": self.tip_position.to_list(),
            "tip_velocity": self.tip_velocity.to_list(),
            "touch_zone": self.touch_zone.value,
        }


@dataclass(eq=False)
class Finger(Pointable):
    is_finger: ClassVar[bool] = True


@dataclass(eq=False)
class Tool(Pointable):
    width: float = 0.0

    is_tool: ClassVar[bool] = True


@dataclass(eq=False)
class Hand:
    """A tracked hand. ``id`` is stable while the hand stays in view."""
    id: int = 0
    direction: Vector3 = field(default_factory=Vector3.invalid)
    palm_normal: Vector3 = field(default_factory=Vector3.invalid)
    palm_position: Vector3 = field(default_factory=Vector3.invalid)
    palm_velocity: Vector3 = field(default_factory=Vector3.invalid)
    stabilized_palm_position: Optional[Vector3] = None
    rotation: Matrix = field(default_factory=Matrix.identity)
    scale_factor_number: float = 0.0
    sphere_center: Vector3 = field(default_factory=Vector3.invalid)
    sphere_radius: float = 0.0
    translation_vector: Vector3 = field(default_factory=Vector3.zero)
    time_visible: Optional[float] = None
    pointables: tuple[Pointable, ...] = ()
    fingers: tuple[Finger, ...] = ()
    tools: tuple[Tool, ...] = ()

    frame = BackRef()

    def is_valid(self) -> bool:
        return (
            self.direction.is_valid()
            and self.palm_normal.is_valid()
            and self.palm_position.is_valid()
            and self.palm_velocity.is_valid()
            and self.sphere_center.is_valid()
        )

    def finger(self, id: int) -> Optional[Finger]:
        return _find(self.fingers, id)

    def tool(self, id: int) -> Optional[Tool]:
        return _find(self.tools, id)

    def pointable(self, id: int) -> Optional[Pointable]:
        return _find(self.pointables, id)

    # --- Motion relative to the same hand in an earlier frame ---

    def translation(self, since: Frame) -> Vector3:
        previous = since.hand(self.id)
        if previous is None:
            return Vector3.zero()
        return self.translation_vector - previous.translation_vector

    def scale_factor(self, since: Frame) -> float:
        previous = since.hand(self.id)
        if previous is None or not previous.scale_factor_number:
            return 1.0
        return math.exp(self.scale_factor_number - previous.scale_factor_number)

    def rotation_matrix(self, since: Frame) -> Matrix:
        previous = since.hand(self.id)
        if previous is None:
            return Matrix.identity()
        return self.rotation.multiply(previous.rotation)

    def rotation_axis(self, since: Frame) -> Vector3:
        previous = since.hand(self.id)
        if previous is None:
            return Vector3.zero()
        return Vector3(
            self.rotation.z_basis.y - previous.rotation.y_basis.z,
            self.rotation.x_basis.z - previous.rotation.z_basis.x,
            self.rotation.y_basis.x - previous.rotation.x_basis.y,
        ).normalized()

    def rotation_angle(self, since: Frame, axis: Optional[Vector3] = None) -> float:
        """Rotation angle in radians; projected onto ``axis`` when given."""
        previous = since.hand(self.id)
        if previous is None or not self.is_valid() or not previous.is_valid():
            return 0.0
        cs = (self.rotation_matrix(since).trace - 1.0) * 0.5
        angle = math.acos(cs) if -1.0 <= cs <= 1.0 else 0.0
        if axis is not None:
            angle *= self.rotation_axis(since).dot(axis.normalized())
        return angle

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "direction": self.direction.to_list(),
            "palm_normal": self.palm_normal.to_list(),
            "palm_position": self.palm_position.to_list(),
            "palm_velocity": self.palm_velocity.to_list(),
            "sphere_center": self.sphere_center.to_list(),
            "sphere_radius": self.sphere_radius,
            "pointable_ids": [p.id for p in self.pointables],
        }


@dataclass(frozen=True)
class InteractionBox:
    """Axis-aligned box of the device's comfortable tracking volume."""
    center: Vector3 = field(default_factory=Vector3.zero)
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0

    def is_valid(self) -> bool:
        return self.center.is_valid() and self.width > 0 and self.height > 0 and self.depth > 0

    def normalize_point(self, position: Vector3, clamp: bool = True) -> Vector3:
        """Map device millimetres to [0, 1] box coordinates (0 at the box minimum)."""
        normalized = Vector3(
            (position.x - self.center.x) / self.width + 0.5,
            (position.y - self.center.y) / self.height + 0.5,
            (position.z - self.center.z) / self.depth + 0.5,
        )
        if clamp:
            return Vector3.from_array(np.clip(normalized.to_array(), 0.0, 1.0))
        return normalized

    def denormalize_point(self, normalized: Vector3) -> Vector3:
        """Inverse of ``normalize_point`` (without clamping)."""
        return Vector3(
            (normalized.x - 0.5) * self.width + self.center.x,
            (normalized.y - 0.5) * self.height + self.center.y,
            (normalized.z - 0.5) * self.depth + self.center.z,
        )


@dataclass(eq=False)
class Frame:
    """One tracking snapshot.

    ``rotation``, ``translation_vector`` and ``scale_factor_number`` are the
    inter-frame motion terms; they stay None unless the message carried them.
    A default-constructed Frame is the invalid frame.
    """
    id: int = 0
    timestamp: int = 0  # microseconds, device clock
    hands: tuple[Hand, ...] = ()
    pointables: tuple[Pointable, ...] = ()
    fingers: tuple[Finger, ...] = ()
    tools: tuple[Tool, ...] = ()
    gestures: tuple[Gesture, ...] = ()
    rotation: Optional[Matrix] = None
    translation_vector: Optional[Vector3] = None
    scale_factor_number: Optional[float] = None
    interaction_box: Optional[InteractionBox] = None
    current_frames_per_second: Optional[float] = None

    controller = BackRef()

    @classmethod
    def invalid(cls) -> Frame:
        return cls()

    def is_valid(self) -> bool:
        return bool(self.id)

    def hand(self, id: int) -> Optional[Hand]:
        return _find(self.hands, id)

    def finger(self, id: int) -> Optional[Finger]:
        return _find(self.fingers, id)

    def tool(self, id: int) -> Optional[Tool]:
        return _find(self.tools, id)

    def pointable(self, id: int) -> Optional[Pointable]:
        return _find(self.pointables, id)

    def gesture(self, id: int) -> Optional[Gesture]:
        return _find(self.gestures, id)

    def gestures_since(self, since: Frame) -> list[Gesture]:
        """Gestures of every frame newer than ``since``, newest frame first.

        Walks the owning controller's history starting at this frame. Without a
        controller only this frame's gestures are returned.
        """
        controller = self.controller
        if controller is None:
            return [] if since is self else list(self.gestures)

        collected: list[Gesture] = []
        started = False
        for frame in controller.frames():
            if frame is self:
                started = True
            if not started:
                continue
            if frame is since:
                break
            collected.extend(frame.gestures)
        return collected

    # --- Motion since an earlier frame ---

    def translation(self, since: Frame) -> Vector3:
        if self.translation_vector is None or since.translation_vector is None:
            return Vector3.zero()
        return self.translation_vector - since.translation_vector

    def scale_factor(self, since: Frame) -> float:
        if self.scale_factor_number is None or not since.scale_factor_number:
            return 1.0
        return math.exp(self.scale_factor_number - since.scale_factor_number)

    def rotation_matrix(self, since: Frame) -> Matrix:
        if self.rotation is None or since.rotation is None:
            return Matrix.identity()
        return self.rotation.multiply(since.rotation)

    def rotation_axis(self, since: Frame) -> Vector3:
        if self.rotation is None or since.rotation is None:
            return Vector3.zero()
        return Vector3(
            self.rotation.z_basis.y - since.rotation.y_basis.z,
            self.rotation.x_basis.z - since.rotation.z_basis.x,
            self.rotation.y_basis.x - since.rotation.x_basis.y,
        ).normalized()

    def rotation_angle(self, since: Frame, axis: Optional[Vector3] = None) -> float:
        """Rotation angle in radians; projected onto ``axis`` when given."""
        if axis is not None:
            return self.rotation_angle(since) * self.rotation_axis(since).dot(axis.normalized())
        cs = (self.rotation_matrix(since).trace - 1.0) * 0.5
        angle = math.acos(cs) if -1.0 <= cs <= 1.0 else math.nan
        return 0.0 if math.isnan(angle) else angle

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "valid": self.is_valid(),
            "hands": [h.to_dict() for h in self.hands],
            "pointables": [p.to_dict() for p in self.pointables],
            "gestures": [g.to_dict() for g in self.gestures],
            "rotation": self.rotation.to_rows() if self.rotation else None,
            "translation": self.translation_vector.to_list() if self.translation_vector else None,
            "scale_factor": self.scale_factor_number,
        }
