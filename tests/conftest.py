from typing import List
from unittest.mock import Mock

import pytest
from loguru import logger

from camera_direction.common import RigidTransform


class FakeClock:
    def __init__(self, t: float = 100.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def tick(self, dt: float) -> None:
        self.t += dt


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_records() -> List[dict]:
    """Loguru records emitted during the test."""
    records: List[dict] = []
    handler_id = logger.add(lambda msg: records.append(msg.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def make_link(ok: bool = True) -> Mock:
    link = Mock(spec=["point", "set_color_enabled"])
    link.set_color_enabled.return_value = ok
    return link


def identity(robot_id: int) -> RigidTransform:
    return RigidTransform(robot_id=robot_id, translation=(0.0, 0.0, 0.0))
