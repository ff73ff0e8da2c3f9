#!/usr/bin/env python3
"""Example Listener: log gestures to a JSON-lines file with running counts.

Demonstrates:
- Subclassing Listener
- Enabling gestures before the connection opens
- Using on_connect/on_exit lifecycle callbacks

Usage:
    python examples/gesture_logger.py
    python examples/gesture_logger.py --url ws://192.168.1.20:6437/v4.json --out gestures.jsonl
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections import Counter
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leapstream.connection import DEFAULT_URL, LeapConnection
from leapstream.controller import Controller
from leapstream.events import Listener
from leapstream.gestures import GestureState

logger = logging.getLogger("leapstream.examples.gesture_logger")


class GestureLogger(Listener):
    """Writes one record per finished gesture."""

    def __init__(self, path: Path):
        self._counts: Counter = Counter()
        self._path = path
        self._file = None

    def on_connect(self, controller):
        self._file = open(self._path, "a")
        logger.info("GestureLogger: writing to %s", self._path)

    def on_disconnect(self, controller):
        logger.info("Device disconnected")

    def on_exit(self, controller):
        if self._file:
            self._file.close()
            self._file = None
        if self._counts:
            logger.info("GestureLogger summary: %s", dict(self._counts))

    def on_frame(self, controller, frame):
        for gesture in frame.gestures:
            if gesture.state is GestureState.STOP:
                self._counts[gesture.type.value] += 1
                self._write(frame.timestamp, gesture.to_dict())

    def on_error(self, controller, error):
        logger.warning("Bad frame: %s", error)

    def _write(self, timestamp: int, record: dict):
        if not self._file:
            return
        self._file.write(json.dumps({"timestamp": timestamp, **record}) + "\n")
        self._file.flush()

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)


def main():
    parser = argparse.ArgumentParser(description="Log finished gestures")
    parser.add_argument("--url", default=DEFAULT_URL, help="Tracking service WebSocket URL")
    parser.add_argument("--out", default="gestures.jsonl", help="Output JSON-lines file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    controller = Controller()
    controller.enable_gestures()
    controller.add_listener(GestureLogger(Path(args.out)))
    try:
        asyncio.run(LeapConnection(controller, args.url).run())
    except KeyboardInterrupt:
        pass
    finally:
        controller.close()


if __name__ == "__main__":
    main()
