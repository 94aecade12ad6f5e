"""Single-flight pick-and-place orchestrator.

State machine per target::

    dequeue -> reset -> APPROACH (rail) -> PICK (arm) -> RETREAT (arm)
            -> PLACE (rail) -> cleanup

A periodic control loop spawns one tick per period. A tick that finds the
busy flag set returns immediately, so ticks never queue behind a running
task. Phase failures raise :class:`~gripflow.errors.GripflowError`
subclasses which end only the current task; the cleanup guard in
:meth:`Orchestrator.tick`'s ``finally`` block always restores the safe
terminal state.

Execution failures reported by the trajectory service are *not* fatal: the
phase is recorded as degraded and the sequence moves on. Planning failure,
rendezvous infeasibility, actuator failure, attachment timeout and contact
loss are fatal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from gripflow.analytics.store import TaskHistoryStore
from gripflow.config import ControlGroupInfo, OrchestratorConfig
from gripflow.control.actuator import ActuatorController
from gripflow.control.contact import AttachmentState, ContactMonitor
from gripflow.control.controllers import ControllerSwitcher
from gripflow.errors import (
    ActuatorFailure,
    AttachmentLost,
    AttachmentTimeout,
    ConfigurationError,
    GripflowError,
)
from gripflow.execution.queue import TargetQueue
from gripflow.execution.rendezvous import compute_rendezvous_wait
from gripflow.execution.types import Phase, TaskResult
from gripflow.geometry import pick_place_rotations, rotate_pose
from gripflow.models import StampedPose, TargetDescriptor
from gripflow.motion.executor import TrajectoryExecutor
from gripflow.motion.planner import MotionPlanClient
from gripflow.motion.types import MotionPlan
from gripflow.services import (
    ActuatorService,
    ControllerSwitchService,
    MotionPlanningService,
    TrajectoryExecutionService,
    wait_for_services,
)

logger = logging.getLogger(__name__)


@dataclass
class _TaskRun:
    """Mutable bookkeeping for the target being processed."""

    target_id: str
    started: float
    success: bool = False
    contact_lost: bool = False
    failure: str | None = None
    error_message: str | None = None
    completed: list[Phase] = field(default_factory=list)
    degraded: list[Phase] = field(default_factory=list)
    rendezvous_wait: float | None = None

    def fail(self, exc: BaseException) -> None:
        self.success = False
        self.failure = type(exc).__name__
        self.error_message = str(exc)

    def to_result(self) -> TaskResult:
        return TaskResult(
            target_id=self.target_id,
            success=self.success,
            duration_ms=(time.monotonic() - self.started) * 1000,
            failure=self.failure,
            error_message=self.error_message,
            completed_phases=list(self.completed),
            degraded_phases=list(self.degraded),
            rendezvous_wait=self.rendezvous_wait,
        )


class Orchestrator:
    """Owns the target queue, the busy flag and the per-target lifecycle.

    Args:
        config: Orchestrator configuration.
        planning: Motion planning service.
        execution: Trajectory execution service.
        actuator: Actuator control service.
        controllers: Controller switch service.
        attachment: Shared attachment cell written by the feedback path.
        analytics: Optional store that records each task result.
        clock: Absolute time source used for rendezvous timing.
        sleep: Coroutine used for the rendezvous wait and settle delay.
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        planning: MotionPlanningService,
        execution: TrajectoryExecutionService,
        actuator: ActuatorService,
        controllers: ControllerSwitchService,
        attachment: AttachmentState | None = None,
        analytics: TaskHistoryStore | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._rail = config.rail
        self._arm = config.arm
        self._required_services = {
            "planning": planning,
            "actuator": actuator,
            "controller_switch": controllers,
        }
        self.queue = TargetQueue()
        self.attachment = attachment or AttachmentState()
        self._switcher = ControllerSwitcher(controllers)
        self._actuator = ActuatorController(actuator)
        self._executor = TrajectoryExecutor(execution, self._switcher)
        self._planner = MotionPlanClient(planning, [self._rail, self._arm], config.planning)
        self._monitor = ContactMonitor(
            self.attachment,
            acquisition_period=config.monitor.acquisition_period,
            retention_period=config.monitor.retention_period,
        )
        self._analytics = analytics
        self._clock = clock
        self._sleep = sleep
        self._pick_rotation, self._place_rotation = pick_place_rotations(
            config.preferred_pick_angle
        )

        self._busy = False
        self._current_phase: Phase | None = None
        self._current_target: str | None = None
        self.last_result: TaskResult | None = None
        self.tasks_processed = 0
        self._ticks: set[asyncio.Task] = set()
        self._stopping = asyncio.Event()

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def current_phase(self) -> Phase | None:
        return self._current_phase

    @property
    def current_target(self) -> str | None:
        return self._current_target

    @property
    def monitor(self) -> ContactMonitor:
        return self._monitor

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Connect to services, validate groups and park the robot.

        Raises:
            ServiceUnavailable: A required service did not come up within
                ``service_timeout``.
            ConfigurationError: A configured motion group does not exist.
        """
        await wait_for_services(self._required_services, self._config.service_timeout)

        available = set(self._executor.group_names())
        for group in (self._rail, self._arm):
            if group.group_name not in available:
                raise ConfigurationError(
                    f"Motion group '{group.group_name}' not found "
                    f"(available: {sorted(available)})"
                )
            logger.info("Loaded motion group '%s'", group.group_name)

        await self._actuator.set_actuator(False)
        await self._move_to_wait_pose()
        logger.info("Orchestrator ready")

    def submit(self, target: TargetDescriptor) -> int:
        """Ingress entry point; returns the number of pending targets."""
        return self.queue.push(target)

    async def run(self) -> None:
        """Spawn a tick every ``tick_period`` until :meth:`shutdown`."""
        period = self._config.tick_period
        self._stopping.clear()
        logger.info("Control loop started (period %.3fs)", period)
        while not self._stopping.is_set():
            task = asyncio.create_task(self.tick())
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=period)
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)
        await self._executor.drain()
        logger.info("Control loop stopped")

    def shutdown(self) -> None:
        """Ask :meth:`run` to exit after in-flight ticks finish."""
        self._stopping.set()

    # ------------------------------------------------------------------
    # Control loop tick
    # ------------------------------------------------------------------

    async def tick(self) -> TaskResult | None:
        """Process the next target, if idle.

        Returns:
            The task result, or None when the queue was empty or a task was
            already in flight.
        """
        if not self.queue:
            return None
        if self._busy:
            logger.debug("Handling an object at the moment, next target waits")
            return None

        self._busy = True
        target = self.queue.pop()
        run = _TaskRun(target_id=target.id, started=time.monotonic())
        self._current_target = target.id
        logger.info("Processing target %s", target.id)

        try:
            await self._reset()
            await self._run_phases(target, run)
            run.success = True
        except GripflowError as e:
            logger.error("Target %s aborted: %s", target.id, e)
            run.fail(e)
        except Exception as e:
            logger.exception("Target %s failed unexpectedly", target.id)
            run.fail(e)
        finally:
            await self._cleanup(run)

        result = run.to_result()
        self.last_result = result
        self.tasks_processed += 1
        if self._analytics is not None:
            try:
                await asyncio.to_thread(self._analytics.record_task_result, result)
            except Exception:
                logger.exception("Failed to record result for target %s", target.id)
        logger.info(
            "Target %s finished: success=%s in %.0fms",
            target.id,
            result.success,
            result.duration_ms,
        )
        return result

    async def _reset(self) -> None:
        """Idempotent reset of controllers, actuator and motion."""
        await self._switcher.deactivate_all(
            [self._arm.controller_name, self._rail.controller_name]
        )
        await self._actuator.set_actuator(False)
        await self._executor.stop(self._rail)
        await self._executor.stop(self._arm)

    async def _run_phases(self, target: TargetDescriptor, run: _TaskRun) -> None:
        tolerances = self._config.planning
        monitor_cfg = self._config.monitor

        # Approach
        self._current_phase = Phase.APPROACH
        approach_plan = await self._plan(
            self._rail,
            rotate_pose(target.approach_pose, self._pick_rotation),
            tolerances.transit_yaw_tolerance,
        )
        await self._execute(run, Phase.APPROACH, self._rail, approach_plan)

        # Pick
        self._current_phase = Phase.PICK
        pick_plan = await self._plan(
            self._arm,
            rotate_pose(target.pick_pose, self._pick_rotation),
            tolerances.transit_yaw_tolerance,
        )
        wait = compute_rendezvous_wait(target.pick_time, self._clock(), pick_plan.duration)
        run.rendezvous_wait = wait
        logger.info("Waiting %.3fs for object to arrive at pick position", wait)
        await self._sleep(wait)

        if not await self._actuator.set_actuator(True):
            raise ActuatorFailure("Gripper engage failed")

        await self._monitor.start_acquisition(self._on_contact_made)
        await self._execute(run, Phase.PICK, self._arm, pick_plan)
        await self._monitor.stop()

        attached = await self._monitor.wait_for_attachment(
            timeout=monitor_cfg.attach_timeout,
            poll_period=monitor_cfg.attach_poll_period,
        )
        if not attached:
            raise AttachmentTimeout(
                f"Timed out after {monitor_cfg.attach_timeout:.1f}s waiting to grab object"
            )
        logger.info("Object attached to gripper")

        async def on_lost() -> None:
            await self._on_contact_lost(run)

        await self._monitor.start_retention(on_lost)

        # Retreat
        self._current_phase = Phase.RETREAT
        retreat_plan = await self._plan(
            self._arm,
            rotate_pose(target.retreat_pose, self._pick_rotation),
            tolerances.transit_yaw_tolerance,
        )
        self._check_contact(run)
        await self._execute(run, Phase.RETREAT, self._arm, retreat_plan)
        self._check_contact(run)

        # Place
        self._current_phase = Phase.PLACE
        place_plan = await self._plan(
            self._rail,
            rotate_pose(target.place_pose, self._place_rotation),
            tolerances.place_yaw_tolerance,
        )
        # Retention ends with the retreat; a drop seen up to here fails the task
        await self._monitor.stop()
        self._check_contact(run)
        await self._execute(run, Phase.PLACE, self._rail, place_plan)

        if not await self._actuator.set_actuator(False):
            raise ActuatorFailure("Gripper release failed")

    async def _plan(
        self,
        group: ControlGroupInfo,
        target: StampedPose,
        yaw_tolerance: float,
    ) -> MotionPlan:
        plan = await self._planner.plan(
            self._executor.current_state(group),
            group.group_name,
            target,
            yaw_tolerance,
        )
        logger.info(
            "%s motion plan found (%.2fs)",
            self._current_phase.value.capitalize() if self._current_phase else "Motion",
            plan.duration,
        )
        return plan

    async def _execute(
        self,
        run: _TaskRun,
        phase: Phase,
        group: ControlGroupInfo,
        plan: MotionPlan,
    ) -> None:
        if not await self._executor.execute(group, plan):
            logger.warning("%s trajectory execution finished with errors", phase.value)
            run.degraded.append(phase)
        run.completed.append(phase)

    async def _on_contact_made(self) -> None:
        await self._executor.stop(self._arm)

    async def _on_contact_lost(self, run: _TaskRun) -> None:
        run.contact_lost = True
        await self._executor.stop(self._rail)
        await self._executor.stop(self._arm)

    @staticmethod
    def _check_contact(run: _TaskRun) -> None:
        if run.contact_lost:
            raise AttachmentLost("Object became detached during transfer")

    # ------------------------------------------------------------------
    # Cleanup guard
    # ------------------------------------------------------------------

    async def _cleanup(self, run: _TaskRun) -> None:
        """Restore the safe terminal state; runs once per processed target."""
        try:
            if run.success:
                await self._move_to_wait_pose(wait=False)
                await self._sleep(self._config.settle_delay)
            else:
                await self._move_to_wait_pose(wait=True)
            await self._actuator.set_actuator(False)
            await self._switcher.deactivate_all(
                [self._arm.controller_name, self._rail.controller_name]
            )
        except Exception:
            logger.exception("Cleanup for target %s failed", run.target_id)
        finally:
            try:
                await self._monitor.stop()
            finally:
                self._current_phase = None
                self._current_target = None
                self._busy = False

    async def _move_to_wait_pose(self, wait: bool = True) -> bool:
        """Send the rail group to its wait pose.

        A blocking move releases the rail controller once it returns; a
        background move leaves it to the caller's controller reset.
        """
        await self._switcher.deactivate(self._arm.controller_name)
        await self._switcher.activate(self._rail.controller_name)
        reached = await self._executor.move_to_named(
            self._rail, self._rail.wait_pose_name, wait=wait
        )
        if wait:
            await self._switcher.deactivate(self._rail.controller_name)
        return reached
