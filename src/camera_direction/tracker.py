# tracker.py
"""Per-color 4-state linear Kalman tracks with variable Δt."""
from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np
from filterpy.common import Q_discrete_white_noise
from filterpy.kalman import KalmanFilter
from loguru import logger

from camera_direction.common import Color
from camera_direction.config import FusionConfig


class ColorTrack:
    """World-frame (x, y) estimate of one color.

    The score is the geometric mean of the two position standard deviations:
    it grows while the track is only predicted and shrinks on every fused
    measurement, so lower means fresher.
    """

    def __init__(
        self,
        color: Color,
        motion_noise: float,
        measurement_noise: float,
        initial_velocity_error_std: float,
    ):
        self.color = color
        self._motion_noise = float(motion_noise)
        self._measurement_noise = float(measurement_noise)
        self._initial_velocity_error_std = float(initial_velocity_error_std)

        # Build filter
        self.kf = KalmanFilter(dim_x=4, dim_z=2)
        self.kf.F = np.eye(4)
        self.kf.H = np.array([[1, 0, 0, 0], [0, 1, 0, 0]])

        mvar = self._measurement_noise ** 2
        self.kf.R = np.diag([mvar, mvar])

        self.kf.P = np.eye(4) * 500.0
        self.kf.x = np.zeros((4, 1))

        # Runtime bookkeeping
        self.initialized = False
        self.last_time: Optional[float] = None
        self.updates = 0

    # ----------------- Private helpers -----------------
    def _set_dt(self, dt: float) -> None:
        self.kf.F[0, 2] = dt
        self.kf.F[1, 3] = dt
        self.kf.Q = Q_discrete_white_noise(
            dim=2, dt=dt, var=self._motion_noise ** 2, order_by_dim=False, block_size=2
        )

    # ------------------ Public API --------------------
    @property
    def motion_noise(self) -> float:
        return self._motion_noise

    @property
    def measurement_noise(self) -> float:
        return self._measurement_noise

    def advance(self, timestamp: float) -> None:
        """Prediction-only step up to ``timestamp`` (seconds since start).

        A timestamp older than the track clock is taken at face value: no
        prediction runs and the clock moves back to it.
        """
        if not self.initialized:
            return
        dt = timestamp - self.last_time
        if dt > 1e-9:
            self._set_dt(dt)
            self.kf.predict()
        self.last_time = timestamp

    def fuse(self, measurement: Tuple[float, float], timestamp: float) -> None:
        z = np.array([[measurement[0]], [measurement[1]]])
        if not self.initialized:
            # First detection → initialise state
            self.kf.x[0, 0], self.kf.x[1, 0] = measurement
            self.kf.x[2, 0] = self.kf.x[3, 0] = 0.0

            pos_var = self._measurement_noise ** 2
            vel_var = self._initial_velocity_error_std ** 2
            self.kf.P = np.diag([pos_var, pos_var, vel_var, vel_var])

            self.initialized = True
            self.last_time = timestamp
        else:
            self.advance(timestamp)

        self.kf.update(z)
        self.updates += 1

    def score(self) -> float:
        if not self.initialized:
            return math.inf
        det = float(np.linalg.det(self.kf.P[:2, :2]))
        return math.sqrt(math.sqrt(max(det, 0.0)))

    def position(self) -> Tuple[float, float]:
        return float(self.kf.x[0, 0]), float(self.kf.x[1, 0])

    def ellipse(self) -> Tuple[float, float, float]:
        """(major semi-axis, minor semi-axis, tilt) of the 1-σ position ellipse."""
        vals, vecs = np.linalg.eigh(self.kf.P[:2, :2])
        vals = np.clip(vals, 0.0, None)
        major, minor = math.sqrt(vals[1]), math.sqrt(vals[0])
        tilt = math.atan2(vecs[1, 1], vecs[0, 1])
        return major, minor, tilt


class TrackStore:
    """One track per color, created lazily on the first fused observation."""

    def __init__(self, cfg: FusionConfig):
        self.cfg = cfg
        self._tracks: List[Optional[ColorTrack]] = [None] * len(Color)

    def __contains__(self, color: Color) -> bool:
        return self._tracks[color.index] is not None

    def __len__(self) -> int:
        return sum(t is not None for t in self._tracks)

    def get(self, color: Color) -> Optional[ColorTrack]:
        return self._tracks[color.index]

    def get_or_create(self, color: Color) -> ColorTrack:
        track = self._tracks[color.index]
        if track is None:
            track = ColorTrack(
                color,
                motion_noise=self.cfg.motion_noise,
                measurement_noise=self.cfg.measurement_noise,
                initial_velocity_error_std=self.cfg.initial_velocity_error_std,
            )
            self._tracks[color.index] = track
            logger.info(
                f"[Tracks] New track for {color.value} "
                f"(motion={track.motion_noise}, measurement={track.measurement_noise})"
            )
        return track

    def colors(self) -> List[Color]:
        return [c for c in Color if self._tracks[c.index] is not None]

    def fuse(self, color: Color, position: Tuple[float, float], elapsed: float) -> None:
        self.get_or_create(color).fuse(position, elapsed)

    def advance(self, color: Color, elapsed: float) -> None:
        track = self._tracks[color.index]
        if track is not None:
            track.advance(elapsed)

    def score(self, color: Color) -> float:
        track = self._tracks[color.index]
        if track is None:
            return math.inf
        score = track.score()
        return math.inf if math.isnan(score) else score

    def position(self, color: Color) -> Optional[Tuple[float, float]]:
        track = self._tracks[color.index]
        return track.position() if track is not None else None

    def ellipse(self, color: Color) -> Optional[Tuple[float, float, float]]:
        track = self._tracks[color.index]
        return track.ellipse() if track is not None else None
