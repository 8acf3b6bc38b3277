# robot_link.py
"""Serial link to one robot: pan actuator and color-detector toggles."""
from __future__ import annotations

import threading
import time
from enum import Enum, auto
from pathlib import Path
from typing import Optional

import serial
from loguru import logger

from camera_direction.common import Color
from camera_direction.config import RobotLinkConfig
from camera_direction.exceptions import FirmwareError


class _Ack(str, Enum):
    ENABLE_OK = auto()
    ENABLE_FAIL = auto()


# ---------------------- Main class ----------------------
class RobotLink:
    """Line protocol spoken by the robot's camera firmware.

    ``PAN_RAD <angle>`` is fire-and-forget. ``COLOR_ENABLE <color> <0|1>`` is
    answered by ``ENABLE_OK`` or ``ENABLE_FAIL`` within the serial timeout.
    """

    def __init__(
        self,
        robot_id: int,
        port: str | Path,
        baudrate: int = 115_200,
        timeout: float = 0.5,
        write_timeout: float | None = None,
        *,
        eol: str = "\n",
    ):
        self.robot_id = robot_id
        self._port = str(port)
        self._baudrate = baudrate
        self._timeout = timeout
        self._write_timeout = write_timeout
        self._eol = eol.encode()
        self._ser: Optional[serial.Serial] = None
        self._write_lock = threading.Lock()    # Whole lines only
        self._request_lock = threading.Lock()  # One COLOR_ENABLE round trip at a time

    @classmethod
    def from_config(cls, robot_id: int, cfg: RobotLinkConfig) -> "RobotLink":
        return cls(robot_id, cfg.port, cfg.baudrate, cfg.timeout, cfg.write_timeout)

    # ---------------- Serial plumbing ----------------
    def open(self) -> None:
        if self._ser and self._ser.is_open:
            return
        wt = self._write_timeout if self._write_timeout is not None else self._timeout
        self._ser = serial.Serial(
            port=self._port,
            baudrate=self._baudrate,
            timeout=self._timeout,
            write_timeout=wt,
        )
        if self._ser.is_open:
            self._ser.reset_input_buffer()

    def close(self) -> None:
        if self._ser and self._ser.is_open:
            self._ser.close()
        self._ser = None

    def is_open(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    # ------------------ Public API -------------------
    def point(self, bearing: float) -> None:
        """Send the pan angle (rad). Delivery failures are logged, never raised.

        Never waits for a pending COLOR_ENABLE reply.
        """
        try:
            self._send(f"PAN_RAD {bearing:.4f}")
        except serial.SerialException as exc:
            logger.warning(f"[Link] roomba{self.robot_id}: pan command lost: {exc}")

    def set_color_enabled(self, color: Color, enable: bool) -> bool:
        try:
            reply = self._request(f"COLOR_ENABLE {color.value} {int(enable)}")
        except serial.SerialException as exc:
            logger.error(f"[Link] roomba{self.robot_id}: serial error: {exc}")
            return False
        return reply == _Ack.ENABLE_OK.name

    # ----------------- Internal core -----------------
    def _send(self, cmd: str, *, flush_input: bool = False) -> None:
        if not self.is_open():
            raise serial.PortNotOpenError()
        with self._write_lock:
            if flush_input:
                self._ser.reset_input_buffer()
            self._ser.write(cmd.encode() + self._eol)
            self._ser.flush()

    def _request(self, cmd: str) -> str:
        with self._request_lock:
            # Drop late replies to an earlier, timed-out request
            self._send(cmd, flush_input=True)
            deadline = time.monotonic() + self._timeout
            while time.monotonic() < deadline:
                raw = self._ser.readline()
                if not raw:
                    break
                line = raw.decode(errors="replace").strip()
                if line in _Ack.__members__:
                    return line
                logger.debug(f"[Link] roomba{self.robot_id}: ignoring {line!r}")
            raise FirmwareError(f"Timeout waiting for response to {cmd!r}")

    # ---------------- Context / repr ---------------
    def __enter__(self) -> "RobotLink":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open() else "closed"
        return f"<RobotLink roomba{self.robot_id} port={self._port!r} ({state})>"
