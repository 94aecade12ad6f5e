"""Motion plan client.

Builds a goal constraint set from a stamped pose, calls the external
planning service with bounded time and attempts, and validates the reply
into a :class:`MotionPlan`.
"""

from __future__ import annotations

import logging

from gripflow.config import ControlGroupInfo, PlanningConfig
from gripflow.errors import PlanningFailure, ServiceUnavailable
from gripflow.models import StampedPose
from gripflow.motion.types import (
    ErrorCode,
    GoalConstraints,
    JointTrajectory,
    MotionPlan,
    MotionPlanRequest,
    OrientationConstraint,
    PositionConstraint,
    RobotState,
)
from gripflow.services import MotionPlanningService

logger = logging.getLogger(__name__)


def build_goal_constraints(
    target: StampedPose,
    link_name: str,
    position_tolerance: float,
    orientation_tolerance: float,
    yaw_tolerance: float,
) -> GoalConstraints:
    """Build the goal constraint set for a target pose.

    Args:
        target: Goal pose of the end-effector link.
        link_name: Link the constraint applies to.
        position_tolerance: Tolerance on each of x/y/z (metres).
        orientation_tolerance: Tolerance on roll and pitch (rad).
        yaw_tolerance: Tolerance on yaw (rad).
    """
    p = target.pose.position
    q = target.pose.orientation
    return GoalConstraints(
        frame_id=target.frame_id,
        position=PositionConstraint(
            link_name=link_name,
            target=(p.x, p.y, p.z),
            tolerance=(position_tolerance,) * 3,
        ),
        orientation=OrientationConstraint(
            link_name=link_name,
            target=(q.x, q.y, q.z, q.w),
            tolerance=(orientation_tolerance, orientation_tolerance, yaw_tolerance),
        ),
    )


def curate_trajectory(trajectory: JointTrajectory, epsilon: float = 0.01) -> JointTrajectory:
    """Force a positive time on the first waypoint.

    The trajectory controller rejects a zero-duration first segment, so a
    first point at ``time_from_start <= 0`` is moved to *epsilon*.

    Raises:
        PlanningFailure: If the trajectory has no points.
    """
    if not trajectory.points:
        raise PlanningFailure("Planner returned an empty trajectory")
    first = trajectory.points[0]
    if first.time_from_start <= 0.0:
        first.time_from_start = epsilon
    return trajectory


class MotionPlanClient:
    """Plans single-goal motions for the configured groups.

    Args:
        service: The external planning service.
        groups: Known motion groups. Requests for any other group fail
            without reaching the service.
        config: Tolerances, planner id and limits.
    """

    def __init__(
        self,
        service: MotionPlanningService,
        groups: list[ControlGroupInfo],
        config: PlanningConfig | None = None,
    ) -> None:
        self._service = service
        self._groups = {g.group_name: g for g in groups}
        self._config = config or PlanningConfig()

    async def plan(
        self,
        start_state: RobotState,
        group_name: str,
        target: StampedPose,
        yaw_tolerance: float,
    ) -> MotionPlan:
        """Plan from *start_state* to *target* for one group.

        Returns:
            A MotionPlan whose first waypoint is time-corrected.

        Raises:
            PlanningFailure: Unknown group, unreachable service, non-success
                error code, or an empty trajectory.
        """
        group = self._groups.get(group_name)
        if group is None:
            logger.error("Invalid group name '%s'", group_name)
            raise PlanningFailure(f"Invalid group name '{group_name}'")

        cfg = self._config
        request = MotionPlanRequest(
            group_name=group_name,
            start_state=start_state,
            goal=build_goal_constraints(
                target,
                group.end_effector_link,
                cfg.position_tolerance,
                cfg.orientation_tolerance,
                yaw_tolerance,
            ),
            allowed_planning_time=cfg.allowed_planning_time,
            num_planning_attempts=cfg.planning_attempts,
            planner_id=cfg.planner_id,
            target=target,
        )

        try:
            response = await self._service.plan(request)
        except ServiceUnavailable as e:
            logger.error("Planning service call for group '%s' failed: %s", group_name, e)
            raise PlanningFailure(f"Planning service unavailable: {e}") from e

        if response.error_code != ErrorCode.SUCCESS:
            code = getattr(response.error_code, "name", str(response.error_code))
            logger.error("Motion planning to pose failed for '%s': %s", group_name, code)
            raise PlanningFailure(f"Planner returned {code} for group '{group_name}'")

        trajectory = curate_trajectory(response.trajectory, cfg.first_point_epsilon)
        logger.debug(
            "Plan for '%s': %d points, %.2fs",
            group_name,
            len(trajectory.points),
            trajectory.duration,
        )
        return MotionPlan(
            group_name=group_name,
            trajectory=trajectory,
            start_state=response.trajectory_start,
            planning_time=response.planning_time,
        )
