"""Builders for raw wire messages used across the tests."""

import json

IDENTITY = [[1, 0, 0], [0, 1, 0], [0, 0, 1]]


def make_hand(id=10, **overrides):
    hand = {
        "id": id,
        "direction": [0.0, 0.0, -1.0],
        "palmNormal": [0.0, -1.0, 0.0],
        "palmPosition": [10.0, 200.0, 5.0],
        "r": IDENTITY,
        "s": 1.0,
        "sphereCenter": [0.0, 220.0, 10.0],
        "sphereRadius": 80.0,
        "t": [1.0, 2.0, 3.0],
    }
    hand.update(overrides)
    return hand


def make_pointable(id=20, hand_id=10, tool=False, **overrides):
    pointable = {
        "id": id,
        "handId": hand_id,
        "length": 50.0,
        "tool": tool,
        "direction": [0.0, 0.0, -1.0],
        "tipPosition": [0.0, 250.0, -30.0],
        "tipVelocity": [1.0, 0.0, 0.0],
    }
    if tool:
        pointable["width"] = 5.0
    pointable.update(overrides)
    return pointable


def make_circle(id=1, pointable_ids=(20,), state="update", **overrides):
    gesture = {
        "id": id,
        "type": "circle",
        "state": state,
        "duration": 250000,
        "center": [0.0, 200.0, 0.0],
        "normal": [0.0, 0.0, 1.0],
        "progress": 1.5,
        "radius": 30.0,
        "pointableIds": list(pointable_ids),
    }
    gesture.update(overrides)
    return gesture


def make_swipe(id=2, **overrides):
    gesture = {
        "id": id,
        "type": "swipe",
        "state": "start",
        "duration": 5000,
        "startPosition": [0.0, 200.0, 0.0],
        "position": [50.0, 200.0, 0.0],
        "direction": [1.0, 0.0, 0.0],
        "speed": 900.0,
    }
    gesture.update(overrides)
    return gesture


def make_tap(kind="keyTap", id=3, **overrides):
    gesture = {
        "id": id,
        "type": kind,
        "state": "stop",
        "duration": 0,
        "position": [0.0, 150.0, 0.0],
        "direction": [0.0, -1.0, 0.0],
        "progress": 1.0,
    }
    gesture.update(overrides)
    return gesture


def make_message(id=1, timestamp=1000, hands=(), pointables=(), gestures=(), **extra):
    data = {
        "id": id,
        "timestamp": timestamp,
        "hands": list(hands),
        "pointables": list(pointables),
        "gestures": list(gestures),
    }
    data.update(extra)
    return json.dumps(data)
