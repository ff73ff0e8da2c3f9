"""WebSocket transport to the tracking service.

Connects once, forwards every message to the controller and reports the
connection lifecycle. Reconnecting is left to the caller.

Usage:
    controller = Controller()
    connection = LeapConnection(controller, "ws://localhost:6437/v4.json")
    asyncio.run(connection.run())
"""

from __future__ import annotations

import asyncio
import json
import logging

import websockets

from leapstream.controller import Controller
from leapstream.errors import DecodeError

logger = logging.getLogger("leapstream.connection")

DEFAULT_URL = "ws://localhost:6437/v4.json"


class LeapConnection:
    def __init__(self, controller: Controller, url: str = DEFAULT_URL):
        self.controller = controller
        self.url = url
        self._ws = None
        self._stopping = False
        self._pending: set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def run(self):
        """Connect and pump messages until the socket closes or ``close()`` is called."""
        self._stopping = False
        self.controller.initialize()
        logger.info("Connecting to %s", self.url)

        try:
            async with websockets.connect(self.url) as ws:
                self._ws = ws
                await ws.send(json.dumps({"focused": True}))
                self.controller.connection_opened(self._send_soon)

                async for message in ws:
                    try:
                        self.controller.handle_message(message)
                    except DecodeError:
                        # already logged and published by the controller
                        continue
        except websockets.ConnectionClosed as e:
            if not self._stopping:
                logger.info("Connection closed: %s", e)
        finally:
            self._ws = None
            self.controller.connection_closed()

    async def close(self):
        self._stopping = True
        if self._ws is not None:
            await self._ws.close()

    def _send_soon(self, text: str):
        if self._ws is None:
            return
        task = asyncio.get_running_loop().create_task(self._ws.send(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
