# transforms.py
"""Camera-frame detections → world-frame positions."""
from __future__ import annotations

from typing import Dict, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from camera_direction.common import PositionObservation, RigidTransform, camera_frame
from camera_direction.exceptions import TransformUnavailable


def optical_to_camera_link(x: float, y: float, z: float) -> np.ndarray:
    """Optical convention (x right, y down, z forward) → link (x forward, y left, z up)."""
    return np.array([z, -x, y], dtype=float)


def camera_to_world(obs: PositionObservation, transform: RigidTransform) -> Tuple[float, float, float]:
    # The detection carries no orientation; identity is implied before the transform.
    p = optical_to_camera_link(obs.x, obs.y, obs.z)
    rot = Rotation.from_quat(transform.rotation)  # scalar-last, same as the wire order
    world = rot.apply(p) + np.asarray(transform.translation, dtype=float)
    return float(world[0]), float(world[1]), float(world[2])


class TransformBuffer:
    """Latest camera→world transform per robot.

    ``lookup`` never waits: a missing or stale entry raises
    :class:`TransformUnavailable` and the caller drops the sample.
    """

    def __init__(self, max_age_s: float = 1.0):
        self.max_age_s = max_age_s
        self._latest: Dict[int, Tuple[RigidTransform, float]] = {}

    def set(self, transform: RigidTransform, received_at: float) -> None:
        self._latest[transform.robot_id] = (transform, received_at)

    def lookup(self, robot_id: int, now: float) -> RigidTransform:
        entry = self._latest.get(robot_id)
        if entry is None:
            raise TransformUnavailable(robot_id, f"{camera_frame(robot_id)} never received")
        transform, received_at = entry
        age = now - received_at
        if self.max_age_s > 0 and age > self.max_age_s:
            raise TransformUnavailable(robot_id, f"latest is {age:.2f}s old")
        return transform

    def transform(self, obs: PositionObservation, now: float) -> Tuple[float, float, float]:
        return camera_to_world(obs, self.lookup(obs.robot_id, now))
