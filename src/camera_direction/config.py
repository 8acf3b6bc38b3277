# config.py
"""Typed configuration blobs for the whole system."""
from dataclasses import dataclass
from typing import Optional


# ---------------------- Fusion ----------------------
@dataclass
class FusionConfig:
    update_rate_hz: float = 10.0          # Marker refresh rate
    min_blob_size: int = 300              # px, candidates below are noise
    motion_noise: float = 0.03            # m/s², fixed per track at creation
    measurement_noise: float = 0.1        # m, fixed per track at creation
    lifetime_threshold: float = 0.1       # score at or above hides the marker
    initial_velocity_error_std: float = 0.3  # m/s
    transform_max_age_s: float = 1.0
    world_frame: str = "map"
    marker_height: float = 0.2            # m


# --------------------- RobotLink --------------------
@dataclass
class RobotLinkConfig:
    port: Optional[str] = None            # "/dev/ttyUSB0" etc., None = no link
    baudrate: int = 115_200
    timeout: float = 0.5                  # Bounds every toggle round trip
    write_timeout: Optional[float] = None


# -------------------- Coordinator -------------------
@dataclass
class CoordinatorConfig:
    robot_count: int = 6
    background_arbitration: bool = True
