import math

import pytest

from camera_direction.common import Color, PositionObservation, RigidTransform
from camera_direction.exceptions import TransformUnavailable
from camera_direction.transforms import TransformBuffer, camera_to_world

from conftest import identity


def test_identity_transform_remaps_optical_axes() -> None:
    obs = PositionObservation(robot_id=1, color=Color.GREEN, x=1.0, y=0.5, z=2.0)

    assert camera_to_world(obs, identity(1)) == pytest.approx((2.0, -1.0, 0.5))


def test_rotation_and_translation_applied_after_remap() -> None:
    half = math.pi / 4
    tf = RigidTransform(
        robot_id=2,
        translation=(1.0, 1.0, 0.0),
        rotation=(0.0, 0.0, math.sin(half), math.cos(half)),  # +90° yaw
    )
    obs = PositionObservation(robot_id=2, color=Color.RED, x=1.0, y=0.5, z=2.0)

    # Link-frame (2, -1, 0.5) rotated to (1, 2, 0.5), then shifted
    assert camera_to_world(obs, tf) == pytest.approx((2.0, 3.0, 0.5))


def test_lookup_without_transform_fails_fast() -> None:
    buf = TransformBuffer(max_age_s=1.0)

    with pytest.raises(TransformUnavailable) as err:
        buf.lookup(3, now=0.0)
    assert err.value.robot_id == 3
    assert "roomba3/camera_link" in str(err.value)


def test_stale_transform_is_unavailable() -> None:
    buf = TransformBuffer(max_age_s=1.0)
    buf.set(identity(1), received_at=10.0)

    assert buf.lookup(1, now=10.5).robot_id == 1
    with pytest.raises(TransformUnavailable):
        buf.lookup(1, now=11.5)


def test_zero_max_age_disables_staleness_check() -> None:
    buf = TransformBuffer(max_age_s=0.0)
    buf.set(identity(1), received_at=0.0)

    assert buf.lookup(1, now=1e6).robot_id == 1


def test_latest_transform_wins() -> None:
    buf = TransformBuffer()
    buf.set(identity(1), received_at=0.0)
    buf.set(RigidTransform(robot_id=1, translation=(5.0, 0.0, 0.0)), received_at=0.1)
    obs = PositionObservation(robot_id=1, color=Color.BLUE, x=0.0, y=0.0, z=1.0)

    assert buf.transform(obs, now=0.2) == pytest.approx((6.0, 0.0, 0.0))
