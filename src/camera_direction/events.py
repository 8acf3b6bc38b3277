# events.py
"""Decoding of newline-delimited JSON events."""
from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, TextIO, Union

from loguru import logger

from camera_direction.common import (
    Candidate,
    CandidateReport,
    Color,
    Marker,
    PositionObservation,
    RigidTransform,
)

Event = Union[PositionObservation, CandidateReport, RigidTransform]


def parse_event(data: Dict[str, Any]) -> Event:
    """Build an inbound event from its decoded JSON object.

    ``{"type": "position", "robot": 1, "color": "green", "x": .., "y": .., "z": ..}``
    ``{"type": "candidates", "robot": 1, "candidates": [{"color": .., "size": .., "radian": ..}]}``
    ``{"type": "transform", "robot": 1, "translation": [x, y, z], "rotation": [x, y, z, w]}``

    Raises ValueError (or UnknownColorError) on malformed input.
    """
    try:
        kind = data["type"]
        robot_id = int(data["robot"])
        if kind == "position":
            return PositionObservation(
                robot_id=robot_id,
                color=Color.from_name(data["color"]),
                x=float(data["x"]),
                y=float(data["y"]),
                z=float(data["z"]),
            )
        if kind == "candidates":
            return CandidateReport(
                robot_id=robot_id,
                candidates=tuple(
                    Candidate(
                        color=Color.from_name(c["color"]),
                        blob_size=int(c["size"]),
                        bearing=float(c["radian"]),
                    )
                    for c in data.get("candidates", ())
                ),
            )
        if kind == "transform":
            tx, ty, tz = (float(v) for v in data["translation"])
            qx, qy, qz, qw = (float(v) for v in data.get("rotation", (0.0, 0.0, 0.0, 1.0)))
            return RigidTransform(
                robot_id=robot_id,
                translation=(tx, ty, tz),
                rotation=(qx, qy, qz, qw),
                stamp=float(data.get("stamp", 0.0)),
            )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed event {data!r}: {exc}") from None
    raise ValueError(f"Unknown event type {kind!r}")


def marker_to_dict(marker: Marker) -> Dict[str, Any]:
    out = asdict(marker)
    out["action"] = marker.action.value
    return out


def feed_events(coordinator, stream: TextIO) -> int:
    """Post every decodable line of ``stream``; always stops the coordinator.

    Returns the number of events posted. Bad lines are logged and skipped.
    """
    posted = 0
    try:
        for lineno, line in enumerate(stream, 1):
            line = line.strip()
            if not line:
                continue
            try:
                coordinator.post(parse_event(json.loads(line)))
                posted += 1
            except ValueError as exc:  # JSONDecodeError included
                logger.warning(f"[Input] line {lineno}: {exc}")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error(f"[Input] Event stream failed after {posted} events: {exc}")
    finally:
        coordinator.stop()
    return posted
