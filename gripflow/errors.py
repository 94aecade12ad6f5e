"""Exception hierarchy for the orchestrator.

Every failure a task can hit is a :class:`GripflowError` subclass so the
control loop can catch them at the task boundary without swallowing
programming errors elsewhere.
"""

from __future__ import annotations


class GripflowError(Exception):
    """Base class for all gripflow errors."""


class ConfigurationError(GripflowError):
    """Invalid or missing configuration (e.g. unknown motion group)."""


class ServiceUnavailable(GripflowError):
    """An external service could not be reached."""


class PlanningFailure(GripflowError):
    """No motion plan could be produced for a phase."""


class TimingInfeasible(GripflowError):
    """The robot cannot reach the pick pose before the object arrives."""


class ActuatorFailure(GripflowError):
    """The actuator service rejected or failed an engage/disengage request."""


class AttachmentTimeout(GripflowError):
    """The object did not attach within the allowed window."""


class AttachmentLost(GripflowError):
    """The object became detached while it was being carried."""
