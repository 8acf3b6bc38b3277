# visualizer.py
"""Uncertainty-ellipse markers, hidden once a track goes stale."""
from __future__ import annotations

import math
from typing import List

from camera_direction.common import DISPLAY_COLORS, Color, Marker, MarkerAction
from camera_direction.config import FusionConfig
from camera_direction.tracker import TrackStore


def marker_namespace(color: Color) -> str:
    return f"{color.value}/kf"


class StalenessVisualizer:
    def __init__(self, cfg: FusionConfig):
        self.cfg = cfg

    def render(self, tracks: TrackStore, elapsed: float, stamp: float) -> List[Marker]:
        """Advance every known track to ``elapsed`` and build its marker.

        Tracks scoring at or above the lifetime threshold get a DELETE marker;
        the track itself stays in the store.
        """
        markers: List[Marker] = []
        for color in tracks.colors():
            tracks.advance(color, elapsed)
            ns, mid = marker_namespace(color), color.index

            if tracks.score(color) >= self.cfg.lifetime_threshold:
                markers.append(
                    Marker(ns=ns, id=mid, action=MarkerAction.DELETE, frame_id=self.cfg.world_frame, stamp=stamp)
                )
                continue

            x, y = tracks.position(color)
            major, minor, tilt = tracks.ellipse(color)
            h = self.cfg.marker_height
            markers.append(
                Marker(
                    ns=ns,
                    id=mid,
                    action=MarkerAction.ADD,
                    frame_id=self.cfg.world_frame,
                    stamp=stamp,
                    position=(x, y, h),
                    # Yaw about the up axis by the ellipse tilt
                    orientation=(0.0, 0.0, math.sin(tilt / 2.0), math.cos(tilt / 2.0)),
                    scale=(2.0 * major, 2.0 * minor, h),
                    rgba=DISPLAY_COLORS[color],
                )
            )
        return markers
