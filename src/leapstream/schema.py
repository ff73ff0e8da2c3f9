"""Wire format of the tracking service's JSON stream.

Each model mirrors one element of a frame message. Field names are snake_case
in Python and camelCase on the wire. Gesture elements form a tagged union on
``type``, so a message is validated (and its gesture kinds selected) in one
pass before any entity is built.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Vec3 = tuple[float, float, float]
Mat3 = tuple[Vec3, Vec3, Vec3]

GESTURE_TYPES = ("circle", "swipe", "screenTap", "keyTap")


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class HandMessage(WireModel):
    id: int
    direction: Vec3
    palm_normal: Vec3
    palm_position: Vec3
    palm_velocity: Optional[Vec3] = None
    stabilized_palm_position: Optional[Vec3] = None
    r: Mat3
    s: float
    sphere_center: Vec3
    sphere_radius: float
    t: Vec3
    time_visible: Optional[float] = None


class PointableMessage(WireModel):
    id: int
    hand_id: Optional[int] = None
    length: float
    tool: bool = False
    direction: Vec3
    tip_position: Vec3
    tip_velocity: Vec3
    width: Optional[float] = None
    stabilized_tip_position: Optional[Vec3] = None
    touch_distance: Optional[float] = None
    touch_zone: Optional[str] = None
    time_visible: Optional[float] = None


class GestureMessage(WireModel):
    id: int
    state: Optional[str] = None
    duration: float  # microseconds
    hand_ids: Optional[list[int]] = None
    pointable_ids: Optional[list[int]] = None


class CircleMessage(GestureMessage):
    type: Literal["circle"]
    center: Vec3
    normal: Vec3
    progress: float
    radius: float


class SwipeMessage(GestureMessage):
    type: Literal["swipe"]
    start_position: Vec3
    position: Vec3
    direction: Vec3
    speed: float


class ScreenTapMessage(GestureMessage):
    type: Literal["screenTap"]
    position: Vec3
    direction: Vec3
    progress: float


class KeyTapMessage(GestureMessage):
    type: Literal["keyTap"]
    position: Vec3
    direction: Vec3
    progress: float


AnyGestureMessage = Annotated[
    Union[CircleMessage, SwipeMessage, ScreenTapMessage, KeyTapMessage],
    Field(discriminator="type"),
]


class InteractionBoxMessage(WireModel):
    center: Vec3
    size: Vec3


class FrameMessage(WireModel):
    id: int
    timestamp: int  # device clock, microseconds
    hands: list[HandMessage] = Field(default_factory=list)
    pointables: list[PointableMessage] = Field(default_factory=list)
    gestures: list[AnyGestureMessage] = Field(default_factory=list)
    r: Optional[Mat3] = None
    t: Optional[Vec3] = None
    s: Optional[float] = None
    interaction_box: Optional[InteractionBoxMessage] = None
    current_frames_per_second: Optional[float] = None
