"""HTTP status server for a running controller.

Endpoints:
- GET /api/status        connection state, newest frame id, history depth
- GET /api/frames/{age}  one frame as JSON (invalid frames have "valid": false)
- GET /metrics           Prometheus text format

Usage:
    leapstream serve --config leapstream.yml
    # or, from code:
    app = create_app(controller, LeapConnection(controller, url))
    uvicorn.run(app, port=8765)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Path
from fastapi.responses import PlainTextResponse

from leapstream import __version__
from leapstream.connection import LeapConnection
from leapstream.controller import Controller

logger = logging.getLogger("leapstream.server")


def _log_connection_end(task: asyncio.Task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Device connection failed: %s", exc)


def create_app(controller: Controller, connection: Optional[LeapConnection] = None) -> FastAPI:
    """Build the app. When ``connection`` is given it runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if connection is not None:
            task = asyncio.create_task(connection.run())
            task.add_done_callback(_log_connection_end)
        yield
        if task is not None:
            await connection.close()
            task.cancel()
            with suppress(asyncio.CancelledError, OSError):
                await task
        controller.close()

    app = FastAPI(title="leapstream", version=__version__, lifespan=lifespan)

    @app.get("/api/status")
    async def api_status():
        latest = controller.frame()
        return {
            "connected": controller.is_connected,
            "gestures_enabled": controller.gestures_enabled,
            "latest_frame_id": latest.id if latest.is_valid() else None,
            "latest_timestamp": latest.timestamp if latest.is_valid() else None,
            "history_frames": len(controller.history),
            "frames_total": controller.metrics.frames_total,
            "decode_errors": controller.metrics.error_counts,
        }

    @app.get("/api/frames/{age}")
    async def api_frame(age: int = Path(..., ge=0)):
        return controller.frame(age).to_dict()

    @app.get("/metrics")
    async def metrics():
        return PlainTextResponse(
            controller.metrics.render(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return app
