# main.py
"""
Entry-point for the camera-direction coordinator.

Events
------
Newline-delimited JSON is read from ``--events`` (default: stdin), one
``transform`` / ``position`` / ``candidates`` object per line; see
``camera_direction.events.parse_event`` for the shapes.

Robots with a ``--port N=DEVICE`` are driven over serial. For every other
robot the pan angle and detector toggles are written to stdout as JSON lines,
together with the ellipse markers.

Live-tuning
-----------
While the program is running you can edit ``runtime_params.json`` and the new
values (min blob size, lifetime threshold, noise terms for new tracks, marker
rate) take effect on the next marker tick.
"""
from __future__ import annotations

import argparse
import io
import json
import sys
import threading
from contextlib import ExitStack
from typing import Dict, List, TextIO

from loguru import logger

from camera_direction.common import Color, Marker
from camera_direction.config import CoordinatorConfig, FusionConfig, RobotLinkConfig
from camera_direction.events import feed_events, marker_to_dict
from camera_direction.live_tuning import RuntimeParamWatcher
from camera_direction.logger import configure_logging
from camera_direction.processor import CameraDirectionCoordinator
from camera_direction.robot_link import RobotLink

_out_lock = threading.Lock()


def _emit(obj: dict) -> None:
    with _out_lock:
        sys.stdout.write(json.dumps(obj) + "\n")
        sys.stdout.flush()


class JsonLinesLink:
    """Stand-in robot link that prints its commands and accepts every toggle."""

    def __init__(self, robot_id: int):
        self.robot_id = robot_id

    def point(self, bearing: float) -> None:
        _emit({"type": "angle", "robot": self.robot_id, "theta": bearing})

    def set_color_enabled(self, color: Color, enable: bool) -> bool:
        _emit({"type": "color_enable", "robot": self.robot_id, "color": color.value, "enable": enable})
        return True


def _emit_markers(markers: List[Marker]) -> None:
    if markers:
        _emit({"type": "markers", "markers": [marker_to_dict(m) for m in markers]})


def _parse_ports(items: List[str]) -> Dict[int, str]:
    ports: Dict[int, str] = {}
    for item in items:
        robot, sep, device = item.partition("=")
        if not sep or not robot.isdigit() or not device:
            raise SystemExit(f"--port expects N=DEVICE, got {item!r}")
        ports[int(robot)] = device
    return ports


def _open_events(path: str, stack: ExitStack) -> TextIO:
    # Undecodable bytes become U+FFFD and fail as a bad line, not a dead reader
    if path == "-":
        return io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="replace")
    return stack.enter_context(open(path, encoding="utf-8", errors="replace"))


# ────────────────────────────────────────────────────────────────────────────
#   M A I N
# ────────────────────────────────────────────────────────────────────────────
def main(argv: List[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--robots", type=int, default=CoordinatorConfig.robot_count)
    ap.add_argument("--port", action="append", default=[], metavar="N=DEVICE")
    ap.add_argument("--baudrate", type=int, default=RobotLinkConfig.baudrate)
    ap.add_argument("--events", default="-", help="JSON-lines file, '-' for stdin")
    ap.add_argument("--params", default="runtime_params.json")
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-dir", default=None)
    args = ap.parse_args(argv)

    configure_logging(args.log_level, args.log_dir)

    # -------------------- Config blobs --------------------
    fusion_cfg = FusionConfig()
    coord_cfg = CoordinatorConfig(robot_count=args.robots)
    ports = _parse_ports(args.port)

    logger.info(
        f"Fusion: rate={fusion_cfg.update_rate_hz} Hz, min_blob={fusion_cfg.min_blob_size}px, "
        f"noise=({fusion_cfg.motion_noise}, {fusion_cfg.measurement_noise}), "
        f"lifetime={fusion_cfg.lifetime_threshold}"
    )

    with ExitStack() as stack:
        links = {}
        for robot_id in range(1, coord_cfg.robot_count + 1):
            if robot_id in ports:
                link_cfg = RobotLinkConfig(port=ports[robot_id], baudrate=args.baudrate)
                links[robot_id] = stack.enter_context(RobotLink.from_config(robot_id, link_cfg))
                logger.info(f"Link: {links[robot_id]!r}")
            else:
                links[robot_id] = JsonLinesLink(robot_id)

        coordinator = CameraDirectionCoordinator(
            fusion_cfg,
            coord_cfg,
            links,
            marker_sink=_emit_markers,
            param_watcher=RuntimeParamWatcher(args.params),
        )
        stream = _open_events(args.events, stack)
        reader = threading.Thread(target=feed_events, args=(coordinator, stream), name="event-reader", daemon=True)
        reader.start()
        coordinator.run()

    logger.info("Main program finished.")


if __name__ == "__main__":
    main()
