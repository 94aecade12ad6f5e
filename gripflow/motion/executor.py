"""Trajectory execution with controller bracketing.

Each execution activates the group's controller, runs the plan on the
external execution service, and deactivates the controller again no matter
how the execution ended.
"""

from __future__ import annotations

import asyncio
import logging

from gripflow.config import ControlGroupInfo
from gripflow.control.controllers import ControllerSwitcher
from gripflow.errors import ServiceUnavailable
from gripflow.motion.types import ErrorCode, MotionPlan, RobotState
from gripflow.services import TrajectoryExecutionService

logger = logging.getLogger(__name__)


class TrajectoryExecutor:
    """Runs plans and named-pose moves on the execution service.

    Args:
        service: External trajectory execution service.
        controllers: Switcher used to bracket each execution.
    """

    def __init__(
        self,
        service: TrajectoryExecutionService,
        controllers: ControllerSwitcher,
    ) -> None:
        self._service = service
        self._controllers = controllers
        self._background: set[asyncio.Task] = set()

    async def execute(self, group: ControlGroupInfo, plan: MotionPlan) -> bool:
        """Execute *plan* on *group*.

        Controller activation is best effort; a failed activation is logged
        and execution is still attempted. The controller is always
        deactivated before returning.

        Returns:
            True only if the service reported success.
        """
        if not await self._controllers.activate(group.controller_name):
            logger.warning("Executing on '%s' without confirmed controller", group.group_name)
        try:
            code = await self._service.execute(group.group_name, plan)
        except ServiceUnavailable as e:
            logger.error("Execution service call for '%s' failed: %s", group.group_name, e)
            code = ErrorCode.FAILURE
        finally:
            await self._controllers.deactivate(group.controller_name)

        if code != ErrorCode.SUCCESS:
            logger.warning(
                "Execution on '%s' finished with %s",
                group.group_name,
                getattr(code, "name", code),
            )
            return False
        return True

    async def stop(self, group: ControlGroupInfo) -> None:
        """Stop any in-flight motion on *group* (best effort)."""
        try:
            await self._service.stop(group.group_name)
        except ServiceUnavailable as e:
            logger.error("Stop request for '%s' failed: %s", group.group_name, e)

    def current_state(self, group: ControlGroupInfo) -> RobotState:
        return self._service.current_state(group.group_name)

    def group_names(self) -> list[str]:
        return self._service.group_names()

    async def move_to_named(
        self,
        group: ControlGroupInfo,
        pose_name: str,
        wait: bool = True,
    ) -> bool:
        """Move *group* to a named pose.

        With ``wait=False`` the move is issued in the background and this
        returns True immediately; the outcome is logged when it finishes.
        """
        if wait:
            return await self._move_named(group, pose_name)

        task = asyncio.create_task(self._move_named(group, pose_name))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return True

    async def drain(self) -> None:
        """Wait for background named-pose moves to finish."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _move_named(self, group: ControlGroupInfo, pose_name: str) -> bool:
        try:
            code = await self._service.move_to_named(group.group_name, pose_name)
        except ServiceUnavailable as e:
            logger.error("Move of '%s' to '%s' failed: %s", group.group_name, pose_name, e)
            return False
        if code != ErrorCode.SUCCESS:
            logger.warning(
                "Move of '%s' to '%s' finished with %s",
                group.group_name,
                pose_name,
                getattr(code, "name", code),
            )
            return False
        logger.info("'%s' reached '%s'", group.group_name, pose_name)
        return True
