"""Tests for the HTTP status server endpoints."""

import logging
import time

import pytest

try:
    from fastapi.testclient import TestClient
    _HAS_TESTCLIENT = True
except ImportError:
    _HAS_TESTCLIENT = False

from leapstream.controller import Controller
from leapstream.server import create_app

from helpers import make_hand, make_message, make_pointable


pytestmark = pytest.mark.skipif(not _HAS_TESTCLIENT, reason="httpx not installed")


@pytest.fixture
def controller():
    return Controller()


@pytest.fixture
def client(controller):
    with TestClient(create_app(controller), raise_server_exceptions=False) as c:
        yield c


class TestRESTEndpoints:
    def test_status_without_frames(self, client):
        resp = client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["connected"] is False
        assert data["latest_frame_id"] is None
        assert data["history_frames"] == 0
        assert data["frames_total"] == 0

    def test_status_after_frames(self, client, controller):
        controller.handle_message(make_message(id=1, timestamp=100))
        controller.handle_message(make_message(id=2, timestamp=200))
        data = client.get("/api/status").json()
        assert data["latest_frame_id"] == 2
        assert data["latest_timestamp"] == 200
        assert data["history_frames"] == 1
        assert data["frames_total"] == 2

    def test_latest_frame(self, client, controller):
        controller.handle_message(make_message(
            id=9, hands=[make_hand(id=10)], pointables=[make_pointable(id=20, hand_id=10)],
        ))
        data = client.get("/api/frames/0").json()
        assert data["id"] == 9
        assert data["valid"] is True
        assert data["hands"][0]["pointable_ids"] == [20]

    def test_older_frame(self, client, controller):
        for i in range(1, 4):
            controller.handle_message(make_message(id=i))
        assert client.get("/api/frames/2").json()["id"] == 1

    def test_missing_frame_is_invalid(self, client):
        data = client.get("/api/frames/5").json()
        assert data["valid"] is False
        assert data["id"] == 0

    def test_negative_age_rejected(self, client):
        assert client.get("/api/frames/-1").status_code == 422

    def test_metrics(self, client, controller):
        controller.handle_message(make_message(id=1))
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "text/plain" in resp.headers["content-type"]
        assert "leapstream_frames_total 1" in resp.text


class TestLifespan:
    def test_controller_closed_on_shutdown(self, controller):
        exits = []
        controller.subscribe("exit", exits.append)
        with TestClient(create_app(controller)):
            pass
        assert len(exits) == 1

    def test_failed_connection_logged(self, controller, caplog):
        class RefusedConnection:
            async def run(self):
                raise ConnectionRefusedError("connection refused")

            async def close(self):
                pass

        with caplog.at_level(logging.ERROR, logger="leapstream.server"):
            with TestClient(create_app(controller, RefusedConnection())):
                for _ in range(200):
                    if "Device connection failed" in caplog.text:
                        break
                    time.sleep(0.01)
        assert "Device connection failed: connection refused" in caplog.text
