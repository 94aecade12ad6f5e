"""Shared test fixtures for the gripflow test suite."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import pytest

from gripflow.config import MonitorConfig, OrchestratorConfig
from gripflow.execution.orchestrator import Orchestrator
from gripflow.hardware.mock import MockCell
from gripflow.models import Point, Pose, StampedPose, TargetDescriptor

# Trajectory durations (s) short enough to keep every test well under a second.
RAIL_DURATION = 0.02
ARM_DURATION = 0.05
# Later than the arm trajectory so a normal pick completes before suction.
ATTACH_DELAY = 0.1


def _stamped(x: float, y: float, z: float, stamp: float = 0.0) -> StampedPose:
    return StampedPose(pose=Pose(position=Point(x=x, y=y, z=z)), stamp=stamp)


def make_target(pick_time: float, target_id: str | None = None) -> TargetDescriptor:
    """A target on a conveyor at y=0.4 whose object reaches the pick point at *pick_time*."""
    fields = {
        "approach_pose": _stamped(0.5, 0.4, 0.30),
        "pick_pose": _stamped(0.5, 0.4, 0.10, stamp=pick_time),
        "retreat_pose": _stamped(0.5, 0.4, 0.30),
        "place_pose": _stamped(-0.6, 0.2, 0.25),
    }
    if target_id is not None:
        fields["id"] = target_id
    return TargetDescriptor(**fields)


@pytest.fixture()
def fast_config() -> OrchestratorConfig:
    """Orchestrator config with millisecond-scale periods and timeouts."""
    return OrchestratorConfig(
        tick_period=0.01,
        service_timeout=0.1,
        settle_delay=0.01,
        monitor=MonitorConfig(
            acquisition_period=0.005,
            retention_period=0.005,
            attach_poll_period=0.002,
            attach_timeout=0.2,
        ),
    )


@pytest.fixture()
def cell(fast_config: OrchestratorConfig) -> MockCell:
    """Simulated cell whose gripper attaches the object after ATTACH_DELAY."""
    return MockCell(
        fast_config,
        plan_durations={
            fast_config.rail.group_name: RAIL_DURATION,
            fast_config.arm.group_name: ARM_DURATION,
        },
        attach_delay=ATTACH_DELAY,
    )


@pytest.fixture()
def orchestrator(cell: MockCell) -> Orchestrator:
    return cell.build_orchestrator()


@pytest.fixture()
def target_factory() -> Callable[..., TargetDescriptor]:
    """Build targets whose pick time is *lead* seconds from now.

    Pass *pick_time* to pin an absolute arrival time instead.
    """

    def factory(
        lead: float = 0.15,
        target_id: str | None = None,
        pick_time: float | None = None,
    ) -> TargetDescriptor:
        if pick_time is None:
            pick_time = time.time() + lead
        return make_target(pick_time, target_id)

    return factory


@pytest.fixture()
def analytics_dir(tmp_path: Path) -> Path:
    """Return a clean temporary directory for analytics data."""
    d = tmp_path / "analytics"
    d.mkdir()
    return d
