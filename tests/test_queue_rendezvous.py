"""Tests for the target queue and rendezvous timing."""

from __future__ import annotations

import pytest

from gripflow.errors import TimingInfeasible
from gripflow.execution.queue import TargetQueue
from gripflow.execution.rendezvous import compute_rendezvous_wait
from gripflow.models import StampedPose, TargetDescriptor


def _target(target_id: str) -> TargetDescriptor:
    return TargetDescriptor(
        id=target_id,
        approach_pose=StampedPose(),
        pick_pose=StampedPose(),
        retreat_pose=StampedPose(),
        place_pose=StampedPose(),
    )


# ------------------------------------------------------------------
# TargetQueue
# ------------------------------------------------------------------


def test_queue_is_fifo() -> None:
    queue = TargetQueue()
    for i, name in enumerate(["t1", "t2", "t3"], start=1):
        assert queue.push(_target(name)) == i

    assert [queue.pop().id for _ in range(3)] == ["t1", "t2", "t3"]
    assert queue.pop() is None
    assert not queue
    assert queue.received == 3


def test_queue_has_no_bound() -> None:
    """Nothing pushes back on the producer; targets simply accumulate."""
    queue = TargetQueue()
    for i in range(1000):
        queue.push(_target(f"t{i}"))
    assert len(queue) == 1000


# ------------------------------------------------------------------
# Rendezvous
# ------------------------------------------------------------------


def test_rendezvous_wait() -> None:
    """Object 10s away, 4s trajectory: wait 6s."""
    assert compute_rendezvous_wait(pick_time=110.0, now=100.0, trajectory_duration=4.0) == (
        pytest.approx(6.0)
    )


def test_rendezvous_exact_fit_waits_zero() -> None:
    assert compute_rendezvous_wait(104.0, 100.0, 4.0) == pytest.approx(0.0)


def test_rendezvous_infeasible() -> None:
    with pytest.raises(TimingInfeasible, match="won't make it"):
        compute_rendezvous_wait(pick_time=103.0, now=100.0, trajectory_duration=4.0)


def test_rendezvous_past_pick_time() -> None:
    with pytest.raises(TimingInfeasible):
        compute_rendezvous_wait(pick_time=99.0, now=100.0, trajectory_duration=0.01)
