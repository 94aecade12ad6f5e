"""Tests for yaw composition and the pick/place pose transform."""

from __future__ import annotations

import math

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from gripflow.geometry import (
    from_rotation,
    pick_place_rotations,
    rotate_pose,
    to_rotation,
    yaw_of,
    yaw_rotation,
)
from gripflow.models import Point, Pose, Quaternion, StampedPose


def _wrap(angle: float) -> float:
    return math.atan2(math.sin(angle), math.cos(angle))


def test_quaternion_model_round_trip() -> None:
    q = from_rotation(yaw_rotation(0.7))
    assert q.x == pytest.approx(0.0)
    assert q.z == pytest.approx(math.sin(0.35))
    assert q.w == pytest.approx(math.cos(0.35))
    assert yaw_of(q) == pytest.approx(0.7)


def test_yaw_rotations_add() -> None:
    combined = yaw_rotation(0.3) * yaw_rotation(0.5)
    assert yaw_of(from_rotation(combined)) == pytest.approx(0.8)


def test_zero_quaternion_rejected() -> None:
    with pytest.raises(ValueError):
        to_rotation(Quaternion(x=0.0, y=0.0, z=0.0, w=0.0))


def test_place_rotation_is_pick_plus_half_turn() -> None:
    """For every pick angle, place yaw equals pick yaw + pi (mod 2pi)."""
    for angle in (0.0, math.pi / 2, -1.2, 2.5):
        pick, place = pick_place_rotations(angle)
        pick_yaw = yaw_of(from_rotation(pick))
        place_yaw = yaw_of(from_rotation(place))
        assert _wrap(place_yaw - pick_yaw - math.pi) == pytest.approx(0.0, abs=1e-9)


def test_rotate_pose_composes_onto_existing_orientation() -> None:
    start = from_rotation(yaw_rotation(math.radians(30)))
    stamped = StampedPose(
        pose=Pose(position=Point(x=1.0, y=2.0, z=3.0), orientation=start),
        stamp=42.0,
        frame_id="conveyor",
    )
    pick, _ = pick_place_rotations(math.radians(90))

    rotated = rotate_pose(stamped, pick)

    assert yaw_of(rotated.pose.orientation) == pytest.approx(math.radians(120))
    assert rotated.pose.position == stamped.pose.position
    assert rotated.stamp == 42.0
    assert rotated.frame_id == "conveyor"
    # Input is left untouched
    assert stamped.pose.orientation == start


def test_rotation_applies_in_pose_frame() -> None:
    """A tool pointing down keeps pointing down after the yaw is composed."""
    tool_down = from_rotation(Rotation.from_euler("x", math.pi))
    stamped = StampedPose(pose=Pose(orientation=tool_down))

    rotated = rotate_pose(stamped, yaw_rotation(math.pi / 2))

    z_axis = to_rotation(rotated.pose.orientation).apply([0.0, 0.0, 1.0])
    assert np.allclose(z_axis, [0.0, 0.0, -1.0])


def test_rotate_pose_output_is_unit_length() -> None:
    skewed = Quaternion(x=0.0, y=0.0, z=0.0, w=2.0)
    stamped = StampedPose(pose=Pose(orientation=skewed))

    rotated = rotate_pose(stamped, yaw_rotation(1.0))

    q = rotated.pose.orientation
    assert np.linalg.norm([q.x, q.y, q.z, q.w]) == pytest.approx(1.0)
    assert yaw_of(q) == pytest.approx(1.0)
