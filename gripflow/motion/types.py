"""Motion layer type definitions.

Request/response shapes exchanged with the planning and execution services,
and the :class:`MotionPlan` handed from the plan client to the executor.
Defined separately to avoid circular imports between planner and executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from gripflow.models import StampedPose


class ErrorCode(IntEnum):
    """Result codes reported by the planning and execution services."""

    SUCCESS = 1
    FAILURE = 99999
    PLANNING_FAILED = -1
    INVALID_MOTION_PLAN = -2
    CONTROL_FAILED = -4
    TIMED_OUT = -6
    PREEMPTED = -7
    INVALID_GROUP_NAME = -15
    GOAL_CONSTRAINTS_VIOLATED = -12


@dataclass
class TrajectoryPoint:
    """A single joint-space waypoint."""

    positions: list[float]
    time_from_start: float


@dataclass
class JointTrajectory:
    """An ordered list of waypoints for a set of joints."""

    joint_names: list[str] = field(default_factory=list)
    points: list[TrajectoryPoint] = field(default_factory=list)

    @property
    def duration(self) -> float:
        """Time from start of the final waypoint, 0.0 when empty."""
        if not self.points:
            return 0.0
        return self.points[-1].time_from_start


@dataclass
class RobotState:
    """Snapshot of joint positions, keyed by joint name."""

    joint_positions: dict[str, float] = field(default_factory=dict)


@dataclass
class PositionConstraint:
    """Box tolerance around the goal position (metres, per axis)."""

    link_name: str
    target: tuple[float, float, float]
    tolerance: tuple[float, float, float]


@dataclass
class OrientationConstraint:
    """Per-axis (roll, pitch, yaw) tolerance around the goal orientation."""

    link_name: str
    target: tuple[float, float, float, float]
    tolerance: tuple[float, float, float]


@dataclass
class GoalConstraints:
    """Goal pose constraint set for one planning request."""

    frame_id: str
    position: PositionConstraint
    orientation: OrientationConstraint


@dataclass
class MotionPlanRequest:
    """Request sent to the Motion Planning Service."""

    group_name: str
    start_state: RobotState
    goal: GoalConstraints
    allowed_planning_time: float
    num_planning_attempts: int
    planner_id: str
    target: StampedPose | None = None


@dataclass
class MotionPlanResponse:
    """Response from the Motion Planning Service."""

    error_code: ErrorCode
    trajectory: JointTrajectory = field(default_factory=JointTrajectory)
    trajectory_start: RobotState = field(default_factory=RobotState)
    planning_time: float = 0.0


@dataclass
class MotionPlan:
    """A validated plan, ready for a single execution.

    Attributes:
        group_name: Group the plan was computed for.
        trajectory: Joint trajectory (first waypoint already time-corrected).
        start_state: Start-state snapshot echoed by the planner.
        planning_time: Opaque planning-time metric from the planner.
    """

    group_name: str
    trajectory: JointTrajectory
    start_state: RobotState
    planning_time: float = 0.0

    @property
    def duration(self) -> float:
        return self.trajectory.duration
