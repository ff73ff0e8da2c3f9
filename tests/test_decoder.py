"""Tests for decoding wire messages into linked frames."""

import json

import pytest

from leapstream.decoder import FrameDecoder, decode
from leapstream.entities import Finger, Tool, Zone
from leapstream.errors import MalformedMessage, UnknownGestureType
from leapstream.geometry import Matrix, Vector3

from helpers import IDENTITY, make_circle, make_hand, make_message, make_pointable, make_swipe, make_tap


class TestFrameDecoding:
    def test_minimal_frame(self):
        frame = decode(make_message(id=1, timestamp=1000))
        assert frame.id == 1
        assert frame.timestamp == 1000
        assert frame.hands == ()
        assert frame.pointables == ()
        assert frame.fingers == ()
        assert frame.tools == ()
        assert frame.gestures == ()
        assert frame.is_valid()

    def test_collections_optional(self):
        frame = decode(json.dumps({"id": 7, "timestamp": 42}))
        assert frame.id == 7
        assert frame.hands == ()
        assert frame.gestures == ()

    def test_message_without_timestamp_is_skipped(self):
        assert decode(json.dumps({"version": 6})) is None
        assert decode(json.dumps({"id": 5, "hands": []})) is None

    def test_accepts_bytes(self):
        frame = decode(make_message(id=3).encode("utf-8"))
        assert frame.id == 3

    def test_hand_fields(self):
        frame = decode(make_message(hands=[make_hand(id=10)]))
        hand = frame.hands[0]
        assert hand.id == 10
        assert hand.direction == Vector3(0.0, 0.0, -1.0)
        assert hand.palm_normal == Vector3(0.0, -1.0, 0.0)
        assert hand.palm_position == Vector3(10.0, 200.0, 5.0)
        assert hand.rotation == Matrix.identity()
        assert hand.scale_factor_number == 1.0
        assert hand.sphere_center == Vector3(0.0, 220.0, 10.0)
        assert hand.sphere_radius == 80.0
        assert hand.translation_vector == Vector3(1.0, 2.0, 3.0)
        assert hand.frame is frame

    def test_palm_velocity_copies_palm_position(self):
        frame = decode(make_message(hands=[make_hand(palmVelocity=[9.0, 9.0, 9.0])]))
        assert frame.hands[0].palm_velocity == frame.hands[0].palm_position

    def test_hand_rotation_rows_become_bases(self):
        rows = [[0, 1, 0], [-1, 0, 0], [0, 0, 1]]
        frame = decode(make_message(hands=[make_hand(r=rows)]))
        rotation = frame.hands[0].rotation
        assert rotation.x_basis == Vector3(0, 1, 0)
        assert rotation.y_basis == Vector3(-1, 0, 0)
        assert rotation.z_basis == Vector3(0, 0, 1)

    def test_frame_transform_present(self):
        frame = decode(make_message(r=IDENTITY, t=[4.0, 5.0, 6.0], s=0.5))
        assert frame.rotation == Matrix.identity()
        assert frame.translation_vector == Vector3(4.0, 5.0, 6.0)
        assert frame.scale_factor_number == 0.5

    def test_frame_transform_absent_stays_unset(self):
        frame = decode(make_message())
        assert frame.rotation is None
        assert frame.translation_vector is None
        assert frame.scale_factor_number is None

    def test_interaction_box_and_fps(self):
        frame = decode(make_message(
            interactionBox={"center": [0, 200, 0], "size": [235, 235, 147]},
            currentFramesPerSecond=110.5,
        ))
        assert frame.interaction_box.center == Vector3(0, 200, 0)
        assert frame.interaction_box.width == 235
        assert frame.interaction_box.depth == 147
        assert frame.current_frames_per_second == 110.5


class TestPointableLinking:
    def test_hand_and_finger_linkage(self):
        frame = decode(make_message(
            hands=[make_hand(id=10)],
            pointables=[make_pointable(id=20, hand_id=10)],
        ))
        hand = frame.hands[0]
        assert hand.fingers[0].id == 20
        assert frame.pointables[0].hand is hand
        assert frame.pointables[0].frame is frame
        assert hand.pointables[0] is frame.pointables[0]
        assert frame.fingers[0] is frame.pointables[0]

    def test_orphan_pointable(self):
        frame = decode(make_message(
            hands=[make_hand(id=10)],
            pointables=[make_pointable(id=21, hand_id=999)],
        ))
        pointable = frame.pointables[0]
        assert pointable.hand is None
        assert frame.hands[0].pointables == ()
        assert frame.fingers == (pointable,)

    def test_tool_vs_finger(self):
        frame = decode(make_message(
            hands=[make_hand(id=10)],
            pointables=[
                make_pointable(id=20, hand_id=10),
                make_pointable(id=30, hand_id=10, tool=True),
            ],
        ))
        finger, tool = frame.pointables
        assert isinstance(finger, Finger)
        assert isinstance(tool, Tool)
        assert tool.width == 5.0
        assert finger.width == 0.0
        assert frame.fingers == (finger,)
        assert frame.tools == (tool,)
        assert frame.hands[0].fingers == (finger,)
        assert frame.hands[0].tools == (tool,)
        assert frame.hands[0].pointables == (finger, tool)

    def test_discriminator_exclusive(self):
        frame = decode(make_message(
            hands=[make_hand()],
            pointables=[make_pointable(id=i, tool=bool(i % 2)) for i in range(1, 8)],
        ))
        for pointable in frame.pointables:
            assert pointable.is_tool != pointable.is_finger

    def test_missing_tool_flag_means_finger(self):
        p = make_pointable()
        del p["tool"]
        frame = decode(make_message(hands=[make_hand()], pointables=[p]))
        assert frame.pointables[0].is_finger

    def test_first_hand_with_id_wins(self):
        frame = decode(make_message(
            hands=[make_hand(id=10), make_hand(id=10)],
            pointables=[make_pointable(hand_id=10)],
        ))
        assert frame.pointables[0].hand is frame.hands[0]
        assert frame.hands[1].pointables == ()

    def test_every_hand_member_is_in_frame(self):
        frame = decode(make_message(
            hands=[make_hand(id=1), make_hand(id=2)],
            pointables=[
                make_pointable(id=10, hand_id=1),
                make_pointable(id=11, hand_id=2, tool=True),
                make_pointable(id=12, hand_id=2),
                make_pointable(id=13, hand_id=5),
            ],
        ))
        for hand in frame.hands:
            for pointable in (*hand.fingers, *hand.tools):
                assert any(pointable is p for p in frame.pointables)
                assert pointable.hand is hand

    def test_touch_zone(self):
        frame = decode(make_message(pointables=[
            make_pointable(id=1, touchZone="hovering", touchDistance=0.3),
            make_pointable(id=2, touchZone="touching"),
            make_pointable(id=3, touchZone="weird"),
        ]))
        zones = [p.touch_zone for p in frame.pointables]
        assert zones == [Zone.HOVERING, Zone.TOUCHING, Zone.NONE]
        assert frame.pointables[0].touch_distance == 0.3


class TestGestureDecoding:
    def test_circle_with_pointable(self):
        frame = decode(make_message(
            hands=[make_hand(id=10)],
            pointables=[make_pointable(id=20, hand_id=10)],
            gestures=[make_circle(pointable_ids=[20], state="update")],
        ))
        circle = frame.gestures[0]
        assert circle.type.value == "circle"
        assert circle.pointable is frame.pointables[0]
        assert circle.pointables == (frame.pointables[0],)
        assert circle.state.value == "update"
        assert circle.radius == 30.0
        assert circle.progress == 1.5
        assert circle.center == Vector3(0.0, 200.0, 0.0)
        assert circle.frame is frame

    def test_circle_without_resolved_pointable(self):
        frame = decode(make_message(gestures=[make_circle(pointable_ids=[99])]))
        circle = frame.gestures[0]
        assert circle.pointables == ()
        assert circle.pointable is None

    def test_swipe_fields(self):
        frame = decode(make_message(gestures=[make_swipe()]))
        swipe = frame.gestures[0]
        assert swipe.type.value == "swipe"
        assert swipe.start_position == Vector3(0.0, 200.0, 0.0)
        assert swipe.position == Vector3(50.0, 200.0, 0.0)
        assert swipe.direction == Vector3(1.0, 0.0, 0.0)
        assert swipe.speed == 900.0

    @pytest.mark.parametrize("kind", ["screenTap", "keyTap"])
    def test_tap_fields(self, kind):
        frame = decode(make_message(gestures=[make_tap(kind)]))
        tap = frame.gestures[0]
        assert tap.type.value == kind
        assert tap.position == Vector3(0.0, 150.0, 0.0)
        assert tap.direction == Vector3(0.0, -1.0, 0.0)
        assert tap.progress == 1.0

    @pytest.mark.parametrize("wire,expected", [
        ("start", "start"), ("update", "update"), ("stop", "stop"),
        ("bogus", "invalid"), (None, "invalid"),
    ])
    def test_state_mapping(self, wire, expected):
        frame = decode(make_message(gestures=[make_swipe(state=wire)]))
        assert frame.gestures[0].state.value == expected

    def test_duration_seconds(self):
        frame = decode(make_message(gestures=[make_circle(duration=1234567)]))
        gesture = frame.gestures[0]
        assert gesture.duration == 1234567
        assert gesture.duration_seconds == 1234567 / 1_000_000

    def test_hand_ids_keep_unresolved_entries(self):
        frame = decode(make_message(
            hands=[make_hand(id=10)],
            gestures=[make_swipe(handIds=[10, 77])],
        ))
        gesture = frame.gestures[0]
        assert len(gesture.hands) == 2
        assert gesture.hands[0] is frame.hands[0]
        assert gesture.hands[1] is None

    def test_pointable_ids_drop_unresolved_entries(self):
        frame = decode(make_message(
            pointables=[make_pointable(id=20), make_pointable(id=21)],
            gestures=[make_swipe(pointableIds=[21, 500, 20])],
        ))
        gesture = frame.gestures[0]
        assert gesture.pointables == (frame.pointables[1], frame.pointables[0])

    def test_gesture_order_preserved(self):
        frame = decode(make_message(gestures=[make_swipe(id=5), make_tap(id=6), make_circle(id=7)]))
        assert [g.id for g in frame.gestures] == [5, 6, 7]


class TestDecodeErrors:
    def test_invalid_json(self):
        with pytest.raises(MalformedMessage):
            decode("{not json")

    def test_non_object_json(self):
        with pytest.raises(MalformedMessage):
            decode("[1, 2, 3]")

    def test_structurally_invalid_frame(self):
        with pytest.raises(MalformedMessage):
            decode(json.dumps({"id": 1, "timestamp": 10, "hands": [{"id": 1}]}))

    def test_bad_vector_length(self):
        with pytest.raises(MalformedMessage):
            decode(make_message(hands=[make_hand(direction=[1.0, 2.0])]))

    def test_unknown_gesture_type(self):
        with pytest.raises(UnknownGestureType) as info:
            decode(make_message(gestures=[make_swipe(), {"id": 9, "type": "unknown", "duration": 1}]))
        assert info.value.gesture_type == "unknown"
        assert info.value.kind == "unknown_gesture_type"

    def test_malformed_kind(self):
        with pytest.raises(MalformedMessage) as info:
            decode("")
        assert info.value.kind == "malformed"

    def test_deeply_nested_json(self):
        with pytest.raises(MalformedMessage):
            decode("[" * 100000 + "]" * 100000)

    def test_deeply_nested_field_in_frame(self):
        nested = "[" * 100000 + "]" * 100000
        with pytest.raises(MalformedMessage):
            decode('{"id": 1, "timestamp": 5, "hands": ' + nested + "}")


class TestCompatibilitySwitches:
    def test_palm_velocity_from_wire(self):
        decoder = FrameDecoder(palm_velocity_from_wire=True)
        frame = decoder.decode(make_message(hands=[make_hand(palmVelocity=[9.0, 8.0, 7.0])]))
        assert frame.hands[0].palm_velocity == Vector3(9.0, 8.0, 7.0)

    def test_palm_velocity_from_wire_falls_back(self):
        decoder = FrameDecoder(palm_velocity_from_wire=True)
        frame = decoder.decode(make_message(hands=[make_hand()]))
        assert frame.hands[0].palm_velocity == frame.hands[0].palm_position

    def test_drop_unresolved_gesture_hands(self):
        decoder = FrameDecoder(drop_unresolved_gesture_hands=True)
        frame = decoder.decode(make_message(
            hands=[make_hand(id=10)],
            gestures=[make_swipe(handIds=[77, 10])],
        ))
        assert frame.gestures[0].hands == (frame.hands[0],)
