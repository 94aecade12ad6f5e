"""Rendezvous timing between the pick trajectory and a moving object."""

from __future__ import annotations

from gripflow.errors import TimingInfeasible


def compute_rendezvous_wait(pick_time: float, now: float, trajectory_duration: float) -> float:
    """Seconds to wait so the pick trajectory completes as the object arrives.

    ``wait = (pick_time - now) - trajectory_duration``

    Args:
        pick_time: Absolute arrival time of the object at the pick pose.
        now: Current absolute time, read fresh for each target.
        trajectory_duration: Duration of the freshly planned pick trajectory.

    Raises:
        TimingInfeasible: If ``now + trajectory_duration > pick_time``.
    """
    if now + trajectory_duration > pick_time:
        late = now + trajectory_duration - pick_time
        raise TimingInfeasible(f"Robot won't make it in time ({late:.3f}s late)")
    return (pick_time - now) - trajectory_duration
