"""Prometheus-compatible metrics for the frame stream.

Generates the text exposition format directly, no client library needed.

Tracked metrics:
- leapstream_frames_total (counter)
- leapstream_skipped_messages_total (counter)
- leapstream_decode_errors_total (counter, by kind)
- leapstream_handler_errors_total (counter)
- leapstream_hands_total / leapstream_pointables_total (counters)
- leapstream_gestures_total (counter, by gesture type)
- leapstream_decode_latency_seconds (histogram)
- leapstream_connected (gauge)
- leapstream_history_frames (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


class _Histogram:
    """Simple histogram with configurable buckets."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Counters the controller updates for every wire message."""

    def __init__(self):
        self._gesture_counts: Counter = Counter()
        self._error_counts: Counter = Counter()
        self._frames_total = 0
        self._skipped_total = 0
        self._hands_total = 0
        self._pointables_total = 0
        self._handler_errors = 0
        self._connected = False
        self._history_frames = 0
        self._lock = threading.Lock()

        # Decode latency: 50us to 10ms
        self._latency = _Histogram(
            [0.00005, 0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.010]
        )
        self._start_time = time.time()

    def record_frame(self, latency_seconds: float, hands: int, pointables: int, gesture_types: list[str]):
        with self._lock:
            self._frames_total += 1
            self._hands_total += hands
            self._pointables_total += pointables
            self._gesture_counts.update(gesture_types)
        self._latency.observe(latency_seconds)

    def record_skip(self):
        with self._lock:
            self._skipped_total += 1

    def record_error(self, kind: str):
        with self._lock:
            self._error_counts[kind] += 1

    def set_handler_errors(self, count: int):
        self._handler_errors = count

    def set_connected(self, connected: bool):
        self._connected = connected

    def set_history_frames(self, count: int):
        self._history_frames = count

    @property
    def frames_total(self) -> int:
        return self._frames_total

    @property
    def skipped_total(self) -> int:
        return self._skipped_total

    @property
    def error_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._error_counts)

    @property
    def gesture_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._gesture_counts)

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        def scalar(name: str, kind: str, help_text: str, value):
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {kind}")
            lines.append(f"{name} {value}")
            lines.append("")

        def labelled(name: str, label: str, help_text: str, counts: Counter):
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} counter")
            for key, count in sorted(counts.items()):
                lines.append(f'{name}{{{label}="{key}"}} {count}')
            lines.append("")

        scalar("leapstream_uptime_seconds", "gauge", "Time since the collector was created",
               f"{time.time() - self._start_time:.1f}")

        with self._lock:
            scalar("leapstream_frames_total", "counter", "Frames decoded and published", self._frames_total)
            scalar("leapstream_skipped_messages_total", "counter",
                   "Non-frame messages ignored", self._skipped_total)
            labelled("leapstream_decode_errors_total", "kind",
                     "Messages that failed to decode", self._error_counts)
            scalar("leapstream_hands_total", "counter", "Hands across all frames", self._hands_total)
            scalar("leapstream_pointables_total", "counter",
                   "Fingers and tools across all frames", self._pointables_total)
            labelled("leapstream_gestures_total", "type",
                     "Gesture reports by type", self._gesture_counts)

        scalar("leapstream_handler_errors_total", "counter",
               "Subscriber handlers that raised", self._handler_errors)

        lines.append(self._latency.render(
            "leapstream_decode_latency_seconds",
            "Time to decode and publish one frame"
        ))
        lines.append("")

        scalar("leapstream_connected", "gauge", "1 while the device connection is open",
               1 if self._connected else 0)
        scalar("leapstream_history_frames", "gauge", "Frames held in history", self._history_frames)

        return "\n".join(lines) + "\n"
