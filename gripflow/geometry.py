"""Orientation composition for pick/place approach angles.

Rotations are :class:`scipy.spatial.transform.Rotation` objects; quaternions
cross the model boundary in ``(x, y, z, w)`` order, matching both
:class:`gripflow.models.Quaternion` and ``Rotation.as_quat()``. The only
kinematics the orchestrator does is composing a fixed yaw onto a target
pose's orientation.
"""

from __future__ import annotations

import math

from scipy.spatial.transform import Rotation

from gripflow.models import Quaternion, StampedPose


def to_rotation(q: Quaternion) -> Rotation:
    """Rotation for a Quaternion model (normalized by scipy).

    Raises:
        ValueError: If the quaternion has zero norm.
    """
    return Rotation.from_quat([q.x, q.y, q.z, q.w])


def from_rotation(rotation: Rotation) -> Quaternion:
    x, y, z, w = (float(v) for v in rotation.as_quat())
    return Quaternion(x=x, y=y, z=z, w=w)


def yaw_rotation(angle: float) -> Rotation:
    """Rotation of *angle* radians about the Z axis."""
    return Rotation.from_euler("z", angle)


def yaw_of(q: Quaternion) -> float:
    """Yaw angle (rad, in ``[-pi, pi]``) of an orientation."""
    return float(to_rotation(q).as_euler("xyz")[2])


def pick_place_rotations(pick_angle: float) -> tuple[Rotation, Rotation]:
    """Return the (pick, place) rotations for a preferred pick yaw.

    The place rotation is the pick rotation turned a further half-turn about
    the same axis.
    """
    pick = yaw_rotation(pick_angle)
    place = pick * yaw_rotation(math.pi)
    return pick, place


def rotate_pose(stamped: StampedPose, rotation: Rotation) -> StampedPose:
    """Compose *rotation* onto the pose's existing orientation.

    The rotation is applied in the pose's own frame. Position, stamp and
    frame are untouched; a new model is returned.
    """
    rotated = from_rotation(to_rotation(stamped.pose.orientation) * rotation)
    pose = stamped.pose.model_copy(update={"orientation": rotated})
    return stamped.model_copy(update={"pose": pose})
