"""Mock services for hardware-free operation and testing.

Provides in-process implementations of every external service contract in
:mod:`gripflow.services`, plus :class:`MockCell` which wires them to a
shared :class:`~gripflow.control.contact.AttachmentState` and an event
journal. Used by the test suite and by the API when no real cell is installed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from gripflow.analytics.store import TaskHistoryStore
from gripflow.config import OrchestratorConfig
from gripflow.control.contact import AttachmentState
from gripflow.errors import ServiceUnavailable
from gripflow.execution.orchestrator import Orchestrator
from gripflow.geometry import yaw_of
from gripflow.motion.types import (
    ErrorCode,
    JointTrajectory,
    MotionPlan,
    MotionPlanRequest,
    MotionPlanResponse,
    RobotState,
    TrajectoryPoint,
)
from gripflow.services import Strictness

logger = logging.getLogger(__name__)

ARM_JOINT_NAMES: list[str] = [
    "shoulder_pan_joint",
    "shoulder_lift_joint",
    "elbow_joint",
    "wrist_1_joint",
    "wrist_2_joint",
    "wrist_3_joint",
]
RAIL_JOINT_NAMES: list[str] = ["linear_rail_joint", *ARM_JOINT_NAMES]

Journal = list[tuple]


class _MockService:
    """Readiness and reachability switches shared by all mock services.

    Attributes:
        available: If False, ``wait_until_ready`` times out.
        ready_delay: Seconds before the service reports ready.
        unreachable: If True, every call raises ServiceUnavailable.
    """

    def __init__(self, journal: Journal | None = None) -> None:
        self.journal = journal
        self.available = True
        self.ready_delay = 0.0
        self.unreachable = False

    async def wait_until_ready(self, timeout: float) -> bool:
        if not self.available or self.ready_delay > timeout:
            await asyncio.sleep(timeout)
            return False
        await asyncio.sleep(self.ready_delay)
        return True

    def _record(self, *event: object) -> None:
        if self.journal is not None:
            self.journal.append(event)

    def _check_reachable(self, what: str) -> None:
        if self.unreachable:
            raise ServiceUnavailable(f"{what} unreachable (mock)")


class MockPlanningService(_MockService):
    """Planner that interpolates joint space straight to a pseudo-goal.

    The goal configuration is derived from the target position and yaw so
    different targets give different trajectories. The first waypoint is
    always at ``time_from_start == 0`` like a real planner's output.

    Args:
        joint_names: Joints per known group.
        durations: Trajectory duration per group (seconds).
        default_duration: Duration for groups not in *durations*.
        num_points: Waypoints per trajectory.
        journal: Shared event journal.
    """

    def __init__(
        self,
        joint_names: dict[str, list[str]],
        durations: dict[str, float] | None = None,
        default_duration: float = 0.05,
        num_points: int = 10,
        journal: Journal | None = None,
    ) -> None:
        super().__init__(journal)
        self._joint_names = joint_names
        self.durations = dict(durations or {})
        self._default_duration = default_duration
        self._num_points = num_points
        self._forced: dict[str, deque[ErrorCode]] = defaultdict(deque)
        self.requests: list[MotionPlanRequest] = []

    def fail_next(self, group_name: str, code: ErrorCode = ErrorCode.PLANNING_FAILED) -> None:
        """Make the next request for *group_name* return *code*."""
        self._forced[group_name].append(code)

    async def plan(self, request: MotionPlanRequest) -> MotionPlanResponse:
        self._record("plan", request.group_name)
        self._check_reachable("Planning service")
        self.requests.append(request)

        group = request.group_name
        if self._forced[group]:
            return MotionPlanResponse(error_code=self._forced[group].popleft())
        joints = self._joint_names.get(group)
        if joints is None:
            return MotionPlanResponse(error_code=ErrorCode.INVALID_GROUP_NAME)

        start = np.array(
            [request.start_state.joint_positions.get(j, 0.0) for j in joints],
            dtype=np.float64,
        )
        goal = self._pseudo_goal(request, len(joints))
        duration = self.durations.get(group, self._default_duration)
        positions = np.linspace(start, goal, self._num_points)
        times = np.linspace(0.0, duration, self._num_points)

        trajectory = JointTrajectory(
            joint_names=list(joints),
            points=[
                TrajectoryPoint(positions=row.tolist(), time_from_start=float(t))
                for row, t in zip(positions, times, strict=True)
            ],
        )
        return MotionPlanResponse(
            error_code=ErrorCode.SUCCESS,
            trajectory=trajectory,
            trajectory_start=RobotState(dict(zip(joints, start.tolist(), strict=True))),
            planning_time=0.001,
        )

    @staticmethod
    def _pseudo_goal(request: MotionPlanRequest, n_joints: int) -> np.ndarray:
        if request.target is None:
            return np.zeros(n_joints)
        p = request.target.pose.position
        yaw = yaw_of(request.target.pose.orientation)
        return np.resize(np.array([p.x, p.y, p.z, yaw], dtype=np.float64), n_joints)


@dataclass
class ExecutionRecord:
    """One call to :meth:`MockTrajectoryExecutionService.execute`."""

    group_name: str
    planned_duration: float
    stopped: bool
    result: ErrorCode


class MockTrajectoryExecutionService(_MockService):
    """Executes plans by sleeping through them; honours ``stop``.

    Args:
        joint_names: Joints per known group.
        time_scale: Multiplier on planned durations.
        named_move_duration: Seconds a named-pose move takes.
        on_execute: Hook called as ``on_execute(group_name, plan)`` when an
            execution starts. Tests use it to inject feedback mid-motion.
        journal: Shared event journal.
    """

    def __init__(
        self,
        joint_names: dict[str, list[str]],
        time_scale: float = 1.0,
        named_move_duration: float = 0.0,
        on_execute: Callable[[str, MotionPlan], None] | None = None,
        journal: Journal | None = None,
    ) -> None:
        super().__init__(journal)
        self._joint_names = joint_names
        self.time_scale = time_scale
        self.named_move_duration = named_move_duration
        self.on_execute = on_execute
        self.failing_groups: set[str] = set()
        self.executions: list[ExecutionRecord] = []
        self.stops: list[str] = []
        self.in_motion: set[str] = set()
        self.max_concurrent = 0
        self._positions: dict[str, dict[str, float]] = {
            g: {j: 0.0 for j in joints} for g, joints in joint_names.items()
        }
        self._stop_events: dict[str, asyncio.Event] = {}

    def group_names(self) -> list[str]:
        return list(self._joint_names)

    def current_state(self, group_name: str) -> RobotState:
        return RobotState(dict(self._positions.get(group_name, {})))

    async def execute(self, group_name: str, plan: MotionPlan) -> ErrorCode:
        self._record("execute", group_name)
        self._check_reachable("Execution service")

        stop_event = self._stop_event(group_name)
        stop_event.clear()
        self.in_motion.add(group_name)
        self.max_concurrent = max(self.max_concurrent, len(self.in_motion))
        if self.on_execute is not None:
            self.on_execute(group_name, plan)

        duration = plan.duration * self.time_scale
        start = time.monotonic()
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=duration)
            stopped = True
        except asyncio.TimeoutError:
            stopped = False
        finally:
            self.in_motion.discard(group_name)

        elapsed = time.monotonic() - start
        self._advance(group_name, plan, elapsed / self.time_scale if stopped else plan.duration)

        if stopped:
            result = ErrorCode.PREEMPTED
            self._record("preempted", group_name)
        elif group_name in self.failing_groups:
            result = ErrorCode.CONTROL_FAILED
        else:
            result = ErrorCode.SUCCESS
        self.executions.append(ExecutionRecord(group_name, plan.duration, stopped, result))
        return result

    async def stop(self, group_name: str) -> None:
        self._record("stop", group_name)
        self._check_reachable("Execution service")
        self.stops.append(group_name)
        self._stop_event(group_name).set()

    async def move_to_named(self, group_name: str, pose_name: str) -> ErrorCode:
        self._record("move_named", group_name, pose_name)
        self._check_reachable("Execution service")
        if group_name not in self._positions:
            return ErrorCode.INVALID_GROUP_NAME
        await asyncio.sleep(self.named_move_duration)
        self._positions[group_name] = {j: 0.0 for j in self._positions[group_name]}
        return ErrorCode.SUCCESS

    def _stop_event(self, group_name: str) -> asyncio.Event:
        if group_name not in self._stop_events:
            self._stop_events[group_name] = asyncio.Event()
        return self._stop_events[group_name]

    def _advance(self, group_name: str, plan: MotionPlan, elapsed: float) -> None:
        """Move the group's joints to the last waypoint reached by *elapsed*."""
        reached = [p for p in plan.trajectory.points if p.time_from_start <= elapsed]
        if not reached:
            return
        names = plan.trajectory.joint_names
        self._positions[group_name].update(zip(names, reached[-1].positions, strict=False))


class MockGripper(_MockService):
    """Vacuum gripper that optionally simulates suction pickup.

    Args:
        attachment: Attachment cell the simulated sensor writes to.
        attach_delay: If set, the object attaches this many seconds after the
            gripper is enabled; disabling releases it immediately.
        call_delay: Latency of every request (seconds).
        journal: Shared event journal.
    """

    def __init__(
        self,
        attachment: AttachmentState | None = None,
        attach_delay: float | None = None,
        call_delay: float = 0.0,
        journal: Journal | None = None,
    ) -> None:
        super().__init__(journal)
        self._attachment = attachment
        self.attach_delay = attach_delay
        self.call_delay = call_delay
        self.enabled = False
        self.history: list[bool] = []
        self.reject: set[bool] = set()
        self._pending: asyncio.TimerHandle | None = None

    async def set_enabled(self, enable: bool) -> bool:
        self._record("actuator", enable)
        self._check_reachable("Gripper service")
        if self.call_delay:
            await asyncio.sleep(self.call_delay)
        if enable in self.reject:
            return False
        self.enabled = enable
        self.history.append(enable)
        self._simulate_suction(enable)
        return True

    def _simulate_suction(self, enable: bool) -> None:
        if self._attachment is None or self.attach_delay is None:
            return
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if enable:
            loop = asyncio.get_running_loop()
            self._pending = loop.call_later(self.attach_delay, self._attachment.update, True)
        else:
            self._attachment.update(False)


class MockControllerManager(_MockService):
    """Tracks which controllers are running.

    Args:
        controllers: Known controller names.
        journal: Shared event journal.
    """

    def __init__(self, controllers: list[str], journal: Journal | None = None) -> None:
        super().__init__(journal)
        self._known = set(controllers)
        self.active: set[str] = set()
        self.reject = False
        self.calls: list[tuple[tuple[str, ...], tuple[str, ...], Strictness]] = []

    async def switch(
        self,
        start: list[str],
        stop: list[str],
        strictness: Strictness = Strictness.BEST_EFFORT,
    ) -> bool:
        self._record("switch", tuple(start), tuple(stop))
        self._check_reachable("Controller manager")
        self.calls.append((tuple(start), tuple(stop), strictness))
        if self.reject:
            return False
        unknown = [c for c in (*start, *stop) if c not in self._known]
        if unknown and strictness == Strictness.STRICT:
            return False
        for name in stop:
            self.active.discard(name)
        for name in start:
            if name in self._known:
                self.active.add(name)
        return True


class MockCell:
    """A complete simulated work cell sharing one journal.

    Args:
        config: Orchestrator configuration (group and controller names).
        plan_durations: Trajectory duration per group name (seconds).
        attach_delay: Seconds from gripper enable to simulated attachment;
            None leaves attachment entirely to the caller.
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        plan_durations: dict[str, float] | None = None,
        attach_delay: float | None = None,
    ) -> None:
        self.config = config or OrchestratorConfig()
        self.journal: Journal = []
        self.attachment = AttachmentState()
        rail, arm = self.config.rail, self.config.arm
        joint_names = {rail.group_name: RAIL_JOINT_NAMES, arm.group_name: ARM_JOINT_NAMES}

        self.planning = MockPlanningService(joint_names, plan_durations, journal=self.journal)
        self.execution = MockTrajectoryExecutionService(joint_names, journal=self.journal)
        self.gripper = MockGripper(self.attachment, attach_delay, journal=self.journal)
        self.controllers = MockControllerManager(
            [rail.controller_name, arm.controller_name], journal=self.journal
        )

    def build_orchestrator(
        self,
        analytics_dir: Path | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> Orchestrator:
        analytics = TaskHistoryStore(root=analytics_dir) if analytics_dir else None
        return Orchestrator(
            config=self.config,
            planning=self.planning,
            execution=self.execution,
            actuator=self.gripper,
            controllers=self.controllers,
            attachment=self.attachment,
            analytics=analytics,
            clock=clock,
            sleep=sleep,
        )

    def events(self, kind: str) -> list[tuple]:
        """Journal entries of one kind, in order."""
        return [e for e in self.journal if e[0] == kind]
