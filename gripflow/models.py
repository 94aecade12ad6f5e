"""Target descriptor and pose models.

These arrive over the ingress channel as JSON, so they are Pydantic models
with camelCase aliases like the API schemas. All models are frozen; the
orientation transform applied before planning returns new instances.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """Cartesian position in metres."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Quaternion(BaseModel):
    """Orientation as a unit quaternion (x, y, z, w)."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


class Pose(BaseModel):
    """Position + orientation."""

    model_config = ConfigDict(frozen=True)

    position: Point = Field(default_factory=Point)
    orientation: Quaternion = Field(default_factory=Quaternion)


class StampedPose(BaseModel):
    """A pose with a reference frame and an absolute timestamp.

    Attributes:
        pose: The pose itself.
        stamp: Absolute time in epoch seconds. For the pick pose this is the
            instant the object reaches the pick point.
        frame_id: Reference frame of the pose.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pose: Pose = Field(default_factory=Pose)
    stamp: float = 0.0
    frame_id: str = Field("world", alias="frameId")


def _new_target_id() -> str:
    return str(uuid.uuid4())[:8]


class TargetDescriptor(BaseModel):
    """The four stamped poses describing one object to handle."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_target_id)
    approach_pose: StampedPose = Field(alias="approachPose")
    pick_pose: StampedPose = Field(alias="pickPose")
    retreat_pose: StampedPose = Field(alias="retreatPose")
    place_pose: StampedPose = Field(alias="placePose")

    @property
    def pick_time(self) -> float:
        """Absolute arrival time of the object at the pick pose."""
        return self.pick_pose.stamp
