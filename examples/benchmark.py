#!/usr/bin/env python3
"""leapstream benchmark: decode latency and throughput on synthetic frames.

Builds wire messages shaped like the tracking service's output and pushes
them through a Controller. No device required.

Usage:
    python examples/benchmark.py
    python examples/benchmark.py --iterations 5000 --hands 2 --gestures 3
"""

from __future__ import annotations

import argparse
import gc
import json
import os
import sys
import time
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leapstream.controller import Controller
from leapstream.decoder import FrameDecoder


def get_memory_mb() -> float:
    """Get current process RSS in MB."""
    try:
        import resource
        return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024  # Linux: KB → MB
    except ImportError:
        return 0.0


def _vec(rng: np.random.Generator, scale: float = 100.0) -> list[float]:
    return [float(v) for v in rng.normal(0, scale, 3)]


def _rotation(rng: np.random.Generator) -> list[list[float]]:
    q, _ = np.linalg.qr(rng.normal(size=(3, 3)))
    return q.tolist()


def generate_messages(n: int, hands: int, gestures: int, seed: int = 0) -> list[str]:
    """Synthetic frame messages with five fingers per hand."""
    rng = np.random.default_rng(seed)
    messages = []

    for i in range(1, n + 1):
        hand_list, pointables = [], []
        for h in range(hands):
            hand_id = h + 1
            hand_list.append({
                "id": hand_id,
                "direction": _vec(rng, 1.0),
                "palmNormal": _vec(rng, 1.0),
                "palmPosition": _vec(rng),
                "palmVelocity": _vec(rng),
                "r": _rotation(rng),
                "s": float(rng.uniform(0.5, 1.5)),
                "sphereCenter": _vec(rng),
                "sphereRadius": float(rng.uniform(40, 120)),
                "t": _vec(rng),
            })
            for f in range(5):
                pointables.append({
                    "id": hand_id * 10 + f,
                    "handId": hand_id,
                    "length": float(rng.uniform(30, 80)),
                    "tool": False,
                    "direction": _vec(rng, 1.0),
                    "tipPosition": _vec(rng),
                    "tipVelocity": _vec(rng),
                })

        gesture_list = [{
            "id": g + 1,
            "type": "circle",
            "state": "update",
            "duration": 1000 * i,
            "center": _vec(rng),
            "normal": _vec(rng, 1.0),
            "progress": float(rng.uniform(0, 3)),
            "radius": float(rng.uniform(10, 60)),
            "handIds": [1],
            "pointableIds": [10],
        } for g in range(gestures)]

        messages.append(json.dumps({
            "id": i,
            "timestamp": i * 9000,
            "hands": hand_list,
            "pointables": pointables,
            "gestures": gesture_list,
            "r": _rotation(rng),
            "s": 1.0,
            "t": _vec(rng),
        }))

    return messages


def benchmark_decode(decoder: FrameDecoder, messages: list[str]) -> dict:
    """Benchmark decoding alone."""
    # Warmup
    for m in messages[:10]:
        decoder.decode(m)

    gc.collect()
    times = []

    for m in messages:
        t0 = time.perf_counter()
        decoder.decode(m)
        times.append(time.perf_counter() - t0)

    times_ms = np.array(times) * 1000
    return {
        "mean_ms": float(np.mean(times_ms)),
        "median_ms": float(np.median(times_ms)),
        "p95_ms": float(np.percentile(times_ms, 95)),
        "p99_ms": float(np.percentile(times_ms, 99)),
        "min_ms": float(np.min(times_ms)),
        "max_ms": float(np.max(times_ms)),
        "throughput_fps": 1000.0 / float(np.mean(times_ms)),
    }


def benchmark_controller(messages: list[str]) -> dict:
    """Benchmark the full path: decode, history, dispatch to one subscriber."""
    controller = Controller()
    controller.subscribe("frame", lambda event: None)

    gc.collect()
    t0 = time.perf_counter()
    for m in messages:
        controller.handle_message(m)
    elapsed = time.perf_counter() - t0

    return {
        "mean_ms": elapsed * 1000 / len(messages),
        "throughput_fps": len(messages) / elapsed,
        "history": len(controller.history),
    }


def print_table(title: str, rows: list[tuple[str, str]]):
    """Print a formatted table."""
    max_key = max(len(r[0]) for r in rows)
    max_val = max(len(r[1]) for r in rows)
    width = max_key + max_val + 7

    print()
    print(f"  ╭{'─' * width}╮")
    print(f"  │ {title:<{width-2}} │")
    print(f"  ├{'─' * width}┤")
    for key, val in rows:
        print(f"  │ {key:<{max_key}}   {val:>{max_val}} │")
    print(f"  ╰{'─' * width}╯")


def main():
    parser = argparse.ArgumentParser(description="leapstream benchmark")
    parser.add_argument("-n", "--iterations", type=int, default=2000, help="Number of frames")
    parser.add_argument("--hands", type=int, default=1, help="Hands per frame")
    parser.add_argument("--gestures", type=int, default=1, help="Circle gestures per frame")
    args = parser.parse_args()

    n = args.iterations

    mem_before = get_memory_mb()
    print(f"\n  Generating {n} synthetic frame messages...")
    messages = generate_messages(n, args.hands, args.gestures)
    mem_after = get_memory_mb()
    avg_bytes = sum(len(m) for m in messages) / n

    print("  Running decode benchmark...")
    decode_results = benchmark_decode(FrameDecoder(), messages)

    print("  Running controller benchmark...")
    controller_results = benchmark_controller(messages)

    print_table("Decode", [
        ("Mean latency", f"{decode_results['mean_ms']:.3f} ms"),
        ("Median latency", f"{decode_results['median_ms']:.3f} ms"),
        ("P95 latency", f"{decode_results['p95_ms']:.3f} ms"),
        ("P99 latency", f"{decode_results['p99_ms']:.3f} ms"),
        ("Min / Max", f"{decode_results['min_ms']:.3f} / {decode_results['max_ms']:.3f} ms"),
        ("Throughput", f"{decode_results['throughput_fps']:.0f} frames/sec"),
    ])

    print_table("Controller (decode + history + dispatch)", [
        ("Mean latency", f"{controller_results['mean_ms']:.3f} ms"),
        ("Throughput", f"{controller_results['throughput_fps']:.0f} frames/sec"),
        ("Frames in history", f"{controller_results['history']}"),
    ])

    print_table("System", [
        ("Frames", f"{n:,}"),
        ("Hands / gestures per frame", f"{args.hands} / {args.gestures}"),
        ("Average message size", f"{avg_bytes:,.0f} bytes"),
        ("Memory (data)", f"{mem_after - mem_before:.1f} MB"),
        ("Memory (total RSS)", f"{get_memory_mb():.1f} MB"),
        ("Platform", f"{sys.platform} / {os.uname().machine}"),
        ("Python", f"{sys.version.split()[0]}"),
        ("NumPy", f"{np.__version__}"),
    ])

    # The device streams at up to ~115 fps
    headroom = decode_results["throughput_fps"] / 115.0
    print()
    print(f"  Decode headroom at 115 fps: {headroom:.0f}x")
    print()


if __name__ == "__main__":
    main()
