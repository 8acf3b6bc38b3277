# common.py
"""Objects that are shared across multiple modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from camera_direction.exceptions import UnknownColorError


class Color(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    ORANGE = "orange"
    PURPLE = "purple"
    RED = "red"

    @property
    def index(self) -> int:
        return _COLOR_INDEX[self]

    @classmethod
    def from_name(cls, name: str) -> "Color":
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise UnknownColorError(name) from None


_COLOR_INDEX: Dict[Color, int] = {c: i for i, c in enumerate(Color)}

# (r, g, b, a) per color, used for the ellipse markers
DISPLAY_COLORS: Dict[Color, Tuple[float, float, float, float]] = {
    Color.GREEN: (0.0, 0.5, 0.0, 0.3),
    Color.YELLOW: (1.0, 1.0, 0.0, 0.3),
    Color.BLUE: (0.0, 0.0, 1.0, 0.3),
    Color.ORANGE: (1.0, 0.6, 0.0, 0.3),
    Color.PURPLE: (0.5, 0.0, 0.5, 0.3),
    Color.RED: (1.0, 0.0, 0.0, 0.3),
}


def camera_frame(robot_id: int) -> str:
    return f"roomba{robot_id}/camera_link"


# ------------------------- Inbound ------------------------
@dataclass(frozen=True)
class PositionObservation:
    """Blob position in the camera optical frame (x right, y down, z forward)."""
    robot_id: int
    color: Color
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Candidate:
    color: Color
    blob_size: int
    bearing: float  # rad


@dataclass(frozen=True)
class CandidateReport:
    robot_id: int
    candidates: Sequence[Candidate] = ()


@dataclass(frozen=True)
class RigidTransform:
    """Camera-to-world transform of one robot; rotation is a unit quaternion."""
    robot_id: int
    translation: Tuple[float, float, float]
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)  # x, y, z, w
    stamp: float = 0.0


# ------------------------- Outbound -----------------------
@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one selection cycle for one robot."""
    robot_id: int
    bearing: float
    color: Optional[Color] = None  # None = safe default, no arbitration


class MarkerAction(str, Enum):
    ADD = "add"
    DELETE = "delete"


@dataclass(frozen=True)
class Marker:
    ns: str
    id: int
    action: MarkerAction
    frame_id: str = "map"
    stamp: float = 0.0
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)  # x, y, z, w
    scale: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rgba: Tuple[float, float, float, float] = field(default=(0.0, 0.0, 0.0, 0.0))
