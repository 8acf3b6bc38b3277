"""Custom exception classes for camera_direction."""

from __future__ import annotations

from typing import Optional


class CameraDirectionError(Exception):
    """Base exception for all camera_direction errors."""

    pass


class TransformUnavailable(CameraDirectionError):
    """Raised when no valid camera-to-world transform exists for a robot."""

    def __init__(self, robot_id: int, reason: Optional[str] = None):
        self.robot_id = robot_id
        message = f"No transform from roomba{robot_id}/camera_link to world"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnknownRobotError(CameraDirectionError, ValueError):
    """Raised when a RobotId is outside the configured fleet."""

    def __init__(self, robot_id: int, robot_count: int):
        self.robot_id = robot_id
        super().__init__(f"Robot {robot_id} is not in 1..{robot_count}")


class UnknownColorError(CameraDirectionError, ValueError):
    """Raised when a color name is not part of the fixed color set."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown color {name!r}")


class FirmwareError(CameraDirectionError, RuntimeError):
    """Raised when a robot link replies with an unexpected line."""

    pass
