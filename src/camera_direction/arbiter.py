# arbiter.py
"""Keeps exactly one color detector enabled per robot."""
from __future__ import annotations

from typing import List

from loguru import logger

from camera_direction.common import Color
from camera_direction.exceptions import CameraDirectionError


class DetectorState:
    """Local belief of which color detectors are enabled on one robot."""

    def __init__(self, robot_id: int):
        self.robot_id = robot_id
        self._enabled: List[bool] = [False] * len(Color)

    def is_enabled(self, color: Color) -> bool:
        return self._enabled[color.index]

    def set(self, color: Color, enabled: bool) -> None:
        self._enabled[color.index] = enabled

    def enabled_colors(self) -> List[Color]:
        return [c for c in Color if self._enabled[c.index]]

    def __repr__(self) -> str:
        names = ",".join(c.value for c in self.enabled_colors()) or "-"
        return f"<DetectorState roomba{self.robot_id} enabled={names}>"


class ResourceArbiter:
    """Issues enable/disable toggles until the robot's state matches the winner.

    A toggle that fails leaves the local entry untouched, so the same
    transition is attempted again the next time that color wins.
    """

    def __init__(self, link, state: DetectorState):
        self.link = link
        self.state = state

    def _toggle(self, color: Color, enable: bool) -> bool:
        verb = "activate" if enable else "deactivate"
        try:
            ok = bool(self.link.set_color_enabled(color, enable))
        except (CameraDirectionError, OSError, TimeoutError) as exc:
            logger.error(f"[Arbiter] roomba{self.state.robot_id}: couldn't {verb} {color.value}: {exc}")
            return False
        if not ok:
            logger.error(f"[Arbiter] roomba{self.state.robot_id}: color_enable refused, couldn't {verb} {color.value}")
            return False
        self.state.set(color, enable)
        return True

    def arbitrate(self, winner: Color) -> int:
        """Returns the number of toggle calls issued."""
        calls = 0
        for color in Color:
            enabled = self.state.is_enabled(color)
            if color == winner and not enabled:
                self._toggle(color, True)
                calls += 1
            elif color != winner and enabled:
                self._toggle(color, False)
                calls += 1
        if calls:
            logger.debug(f"[Arbiter] {self.state!r} after {calls} toggle(s)")
        return calls
