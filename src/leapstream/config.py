"""Client configuration, loadable from YAML.

Example ``leapstream.yml``:

    host: localhost
    port: 6437
    enable_gestures: true
    history_size: 60
    palm_velocity_from_wire: false
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml

from leapstream.controller import Controller
from leapstream.decoder import FrameDecoder
from leapstream.history import DEFAULT_HISTORY_SIZE

logger = logging.getLogger("leapstream.config")


@dataclass
class ClientConfig:
    host: str = "localhost"
    port: int = 6437
    path: str = "/v4.json"
    history_size: int = DEFAULT_HISTORY_SIZE
    enable_gestures: bool = False
    palm_velocity_from_wire: bool = False
    drop_unresolved_gesture_hands: bool = False
    server_host: str = "127.0.0.1"
    server_port: int = 8765
    log_level: str = "info"

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}{self.path}"

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientConfig:
        """Load a config file. Unknown keys are ignored with a warning."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)

    def build_controller(self) -> Controller:
        controller = Controller(
            decoder=FrameDecoder(
                palm_velocity_from_wire=self.palm_velocity_from_wire,
                drop_unresolved_gesture_hands=self.drop_unresolved_gesture_hands,
            ),
            history_size=self.history_size,
        )
        if self.enable_gestures:
            controller.enable_gestures(True)
        return controller
