"""leapstream - client for a motion-tracking controller's JSON frame stream."""

__version__ = "0.1.0"

from leapstream.geometry import Vector3, Matrix
from leapstream.errors import DecodeError, MalformedMessage, UnknownGestureType
from leapstream.entities import Frame, Hand, Pointable, Finger, Tool, Zone, InteractionBox
from leapstream.gestures import (
    Gesture, CircleGesture, SwipeGesture, ScreenTapGesture, KeyTapGesture, GestureState, GestureType,
)
from leapstream.decoder import FrameDecoder, decode
from leapstream.history import FrameHistory
from leapstream.events import EventType, ControllerEvent, EventDispatcher, Listener
from leapstream.controller import Controller
from leapstream.metrics import MetricsCollector
from leapstream.config import ClientConfig
from leapstream.playback import MessagePlayer
