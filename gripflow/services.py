"""Contracts for the external services the orchestrator drives.

Path planning, trajectory interpolation, the gripper and the controller
manager all live outside this process. The orchestrator only sees these
narrow async interfaces; transport bindings implement them and raise
:class:`~gripflow.errors.ServiceUnavailable` when a call cannot be
delivered. :mod:`gripflow.hardware.mock` provides in-process versions.
"""

from __future__ import annotations

import asyncio
import logging
from enum import IntEnum
from typing import Protocol

from gripflow.errors import ServiceUnavailable
from gripflow.motion.types import (
    ErrorCode,
    MotionPlan,
    MotionPlanRequest,
    MotionPlanResponse,
    RobotState,
)

logger = logging.getLogger(__name__)


class Strictness(IntEnum):
    """Controller switch strictness."""

    BEST_EFFORT = 1
    STRICT = 2


class ReadinessCheck(Protocol):
    async def wait_until_ready(self, timeout: float) -> bool: ...


class MotionPlanningService(ReadinessCheck, Protocol):
    """Computes collision-aware joint trajectories to a goal constraint."""

    async def plan(self, request: MotionPlanRequest) -> MotionPlanResponse: ...


class TrajectoryExecutionService(Protocol):
    """Drives motion groups along planned trajectories.

    ``execute`` blocks until the motion completes or is stopped.
    """

    def group_names(self) -> list[str]: ...

    def current_state(self, group_name: str) -> RobotState: ...

    async def execute(self, group_name: str, plan: MotionPlan) -> ErrorCode: ...

    async def stop(self, group_name: str) -> None: ...

    async def move_to_named(self, group_name: str, pose_name: str) -> ErrorCode: ...


class ActuatorService(ReadinessCheck, Protocol):
    """Engages or releases the end-effector actuator."""

    async def set_enabled(self, enable: bool) -> bool: ...


class ControllerSwitchService(ReadinessCheck, Protocol):
    """Starts and stops motion controllers."""

    async def switch(
        self,
        start: list[str],
        stop: list[str],
        strictness: Strictness = Strictness.BEST_EFFORT,
    ) -> bool: ...


async def _check_ready(service: ReadinessCheck, timeout: float) -> bool:
    try:
        return await asyncio.wait_for(service.wait_until_ready(timeout), timeout)
    except asyncio.TimeoutError:
        return False


async def wait_for_services(services: dict[str, ReadinessCheck], timeout: float) -> None:
    """Wait for every service to become reachable.

    All checks run concurrently. Each is cancelled after *timeout* seconds,
    even if the service itself ignores the bound.

    Args:
        services: Services keyed by a human-readable service name.
        timeout: Seconds allowed per service.

    Raises:
        ServiceUnavailable: Naming every service that did not come up.
    """
    names = list(services)
    results = await asyncio.gather(
        *(_check_ready(services[n], timeout) for n in names),
        return_exceptions=True,
    )
    missing: list[str] = []
    for name, ready in zip(names, results, strict=True):
        if ready is True:
            logger.info("Service '%s' is available", name)
            continue
        if isinstance(ready, BaseException):
            logger.error("Service '%s' readiness check raised: %s", name, ready)
        else:
            logger.error("Service '%s' was not found within %.1fs", name, timeout)
        missing.append(name)
    if missing:
        raise ServiceUnavailable(f"Services unavailable: {', '.join(missing)}")
