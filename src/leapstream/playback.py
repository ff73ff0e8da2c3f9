"""Replay captured wire messages through a controller.

A capture is a JSON-lines file: one raw message per line, exactly as the
tracking service sent it. Useful for:
- Reproducible tests without a device
- Debugging a decode failure seen in the field
- Demos on machines without the tracking service

Usage:
    player = MessagePlayer.load("session.jsonl")
    player.feed(controller)

    # Or at the original pace:
    player.feed(controller, realtime=True, speed=2.0)
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Iterator, Optional

from leapstream.controller import Controller
from leapstream.errors import DecodeError

logger = logging.getLogger("leapstream.playback")


class MessagePlayer:
    def __init__(self, messages: list[str]):
        self._messages = messages

    @classmethod
    def load(cls, path: str | Path) -> MessagePlayer:
        with open(path, encoding="utf-8") as f:
            messages = [line.rstrip("\n") for line in f if line.strip()]
        return cls(messages)

    @property
    def message_count(self) -> int:
        return len(self._messages)

    def play(self) -> Iterator[str]:
        """Iterate through all messages instantly (no timing)."""
        yield from self._messages

    def play_realtime(self, speed: float = 1.0) -> Iterator[str]:
        """Yield messages paced by their frame timestamps (microseconds).

        Messages without a readable timestamp are yielded immediately.

        Args:
            speed: Playback speed multiplier (2.0 = double speed).
        """
        start = time.monotonic()
        first_ts: Optional[int] = None

        for message in self._messages:
            ts = _timestamp(message)
            if ts is not None:
                if first_ts is None:
                    first_ts = ts
                target = (ts - first_ts) / 1_000_000 / speed
                elapsed = time.monotonic() - start
                if target > elapsed:
                    time.sleep(target - elapsed)
            yield message

    def feed(self, controller: Controller, realtime: bool = False, speed: float = 1.0) -> int:
        """Push every message through ``controller``. Returns frames produced.

        Messages that fail to decode are counted by the controller and skipped.
        """
        produced = 0
        messages = self.play_realtime(speed) if realtime else self.play()
        for message in messages:
            try:
                if controller.handle_message(message) is not None:
                    produced += 1
            except DecodeError:
                continue
        return produced


def _timestamp(message: str) -> Optional[int]:
    try:
        data = json.loads(message)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("timestamp"), (int, float)):
        return int(data["timestamp"])
    return None
