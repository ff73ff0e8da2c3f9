"""Errors raised while turning wire messages into frames."""

from __future__ import annotations

from typing import Optional


class DecodeError(Exception):
    """A wire message could not be turned into a frame."""
    kind = "decode"


class MalformedMessage(DecodeError):
    """The message is not JSON, not an object, or does not match the frame schema."""
    kind = "malformed"


class UnknownGestureType(DecodeError):
    """A gesture element carried a ``type`` tag outside the four known kinds."""
    kind = "unknown_gesture_type"

    def __init__(self, gesture_type: Optional[str]):
        self.gesture_type = gesture_type
        super().__init__(f"unknown gesture type: {gesture_type!r}")
