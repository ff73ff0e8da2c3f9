"""leapstream CLI.

Usage:
    leapstream listen   Connect to the tracking service and print frames
    leapstream replay   Feed a JSON-lines capture through a controller
    leapstream serve    Run the HTTP status server with a live connection
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

from leapstream.config import ClientConfig
from leapstream.controller import Controller
from leapstream.entities import Frame
from leapstream.events import EventType

app = typer.Typer(
    name="leapstream",
    help="Client for the motion-tracking controller's frame stream.",
    add_completion=False,
)


def _load_config(config: Optional[str]) -> ClientConfig:
    if config is None:
        return ClientConfig()
    path = Path(config)
    if not path.exists():
        typer.echo(f"Config file not found: {config}", err=True)
        raise typer.Exit(1)
    return ClientConfig.from_yaml(path)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _summary(frame: Frame) -> str:
    gestures = ", ".join(f"{g.type.value}:{g.state.value}" for g in frame.gestures)
    return (
        f"frame {frame.id} t={frame.timestamp} "
        f"hands={len(frame.hands)} fingers={len(frame.fingers)} tools={len(frame.tools)}"
        + (f" gestures=[{gestures}]" if gestures else "")
    )


@app.command()
def listen(
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    host: Optional[str] = typer.Option(None, help="Tracking service host"),
    port: Optional[int] = typer.Option(None, help="Tracking service port"),
    gestures: Optional[bool] = typer.Option(None, "--gestures/--no-gestures", help="Enable gesture reporting"),
    log_level: Optional[str] = typer.Option(None, help="Log level"),
):
    """Connect to the tracking service and print one line per frame."""
    from leapstream.connection import LeapConnection

    cfg = _load_config(config)
    if host is not None:
        cfg.host = host
    if port is not None:
        cfg.port = port
    if gestures is not None:
        cfg.enable_gestures = gestures
    _setup_logging(log_level or cfg.log_level)

    controller = cfg.build_controller()
    controller.subscribe(EventType.FRAME, lambda event: typer.echo(_summary(event.frame)))
    controller.subscribe(
        EventType.ERROR, lambda event: typer.echo(f"decode error: {event.error}", err=True)
    )

    typer.echo(f"Connecting to {cfg.url}")
    try:
        asyncio.run(LeapConnection(controller, cfg.url).run())
    except KeyboardInterrupt:
        pass
    except OSError as e:
        typer.echo(f"Could not connect to {cfg.url}: {e}", err=True)
        raise typer.Exit(1)
    finally:
        controller.close()


@app.command()
def replay(
    capture: str = typer.Argument(..., help="JSON-lines file of raw wire messages"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    realtime: bool = typer.Option(False, help="Pace frames by their timestamps"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every frame"),
):
    """Feed a captured session through a controller and summarise it."""
    from leapstream.playback import MessagePlayer

    path = Path(capture)
    if not path.exists():
        typer.echo(f"Capture not found: {capture}", err=True)
        raise typer.Exit(1)

    player = MessagePlayer.load(path)
    controller = Controller()
    if verbose:
        controller.subscribe(EventType.FRAME, lambda event: typer.echo(_summary(event.frame)))

    typer.echo(f"Replaying {path.name} ({player.message_count} messages)")
    frames = player.feed(controller, realtime=realtime, speed=speed)

    metrics = controller.metrics
    typer.echo(f"Frames: {frames}")
    typer.echo(f"Skipped: {metrics.skipped_total}")
    typer.echo(f"Errors: {sum(metrics.error_counts.values())}")
    for name, count in sorted(metrics.gesture_counts.items()):
        typer.echo(f"  {name}: {count}")


@app.command()
def serve(
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
):
    """Run the HTTP status server with a live connection."""
    import uvicorn
    from leapstream.connection import LeapConnection
    from leapstream.server import create_app

    cfg = _load_config(config)
    _setup_logging(cfg.log_level)
    controller = cfg.build_controller()
    fastapi_app = create_app(controller, LeapConnection(controller, cfg.url))

    bind_host = host or cfg.server_host
    bind_port = port or cfg.server_port
    typer.echo(f"Serving status for {cfg.url} on http://{bind_host}:{bind_port}")
    uvicorn.run(fastapi_app, host=bind_host, port=bind_port, log_level=cfg.log_level)


def main():
    app()


if __name__ == "__main__":
    main()
