"""Orchestrator configuration.

All tunable constants live in :class:`OrchestratorConfig`. Defaults match the
production cell; a JSON file (camelCase keys) can override any of them.
"""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from gripflow.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GRIPFLOW_CONFIG"


class ControlGroupInfo(BaseModel):
    """Static description of one motion group.

    Attributes:
        group_name: Planning group identifier.
        controller_name: Controller driving the group's joints.
        wait_pose_name: Named safe pose the group returns to.
        end_effector_link: Link the goal pose constraints apply to.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    group_name: str = Field(alias="groupName")
    controller_name: str = Field(alias="controllerName")
    wait_pose_name: str = Field(alias="waitPoseName")
    end_effector_link: str = Field("tool0", alias="endEffectorLink")


class PlanningConfig(BaseModel):
    """Motion planning request parameters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    position_tolerance: float = Field(0.01, gt=0, alias="positionTolerance")
    orientation_tolerance: float = Field(0.01, gt=0, alias="orientationTolerance")
    transit_yaw_tolerance: float = Field(0.1, gt=0, alias="transitYawTolerance")
    place_yaw_tolerance: float = Field(3.14, gt=0, alias="placeYawTolerance")
    allowed_planning_time: float = Field(1.0, gt=0, alias="allowedPlanningTime")
    planning_attempts: int = Field(4, ge=1, alias="planningAttempts")
    planner_id: str = Field("RRTConnectkConfigDefault", alias="plannerId")
    first_point_epsilon: float = Field(0.01, gt=0, alias="firstPointEpsilon")


class MonitorConfig(BaseModel):
    """Contact monitor poll periods and attachment timeout (seconds)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    acquisition_period: float = Field(0.1, gt=0, alias="acquisitionPeriod")
    retention_period: float = Field(0.2, gt=0, alias="retentionPeriod")
    attach_poll_period: float = Field(0.01, gt=0, alias="attachPollPeriod")
    attach_timeout: float = Field(2.0, gt=0, alias="attachTimeout")


def _default_rail() -> ControlGroupInfo:
    return ControlGroupInfo(
        group_name="robot_rail",
        controller_name="robot_rail_controller",
        wait_pose_name="RAIL_ARM_WAIT",
    )


def _default_arm() -> ControlGroupInfo:
    return ControlGroupInfo(
        group_name="robot",
        controller_name="robot_controller",
        wait_pose_name="ARM_WAIT",
    )


class OrchestratorConfig(BaseModel):
    """Top-level orchestrator configuration.

    Attributes:
        tick_period: Control loop period in seconds.
        service_timeout: Startup wait for each required service.
        settle_delay: Pause after a successful task before cleanup continues.
        preferred_pick_angle: Yaw (rad) composed onto pick poses.
        rail: Coarse-motion group.
        arm: Fine-motion group.
        planning: Planner request parameters.
        monitor: Contact monitor timings.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tick_period: float = Field(0.1, gt=0, alias="tickPeriod")
    service_timeout: float = Field(5.0, gt=0, alias="serviceTimeout")
    settle_delay: float = Field(3.0, ge=0, alias="settleDelay")
    preferred_pick_angle: float = Field(math.radians(90.0), alias="preferredPickAngle")
    rail: ControlGroupInfo = Field(default_factory=_default_rail)
    arm: ControlGroupInfo = Field(default_factory=_default_arm)
    planning: PlanningConfig = Field(default_factory=PlanningConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)

    @model_validator(mode="after")
    def _distinct_groups(self) -> OrchestratorConfig:
        if self.rail.group_name == self.arm.group_name:
            raise ValueError(f"rail and arm share group name '{self.rail.group_name}'")
        if self.rail.controller_name == self.arm.controller_name:
            raise ValueError(
                f"rail and arm share controller name '{self.rail.controller_name}'"
            )
        return self

    @classmethod
    def from_json_file(cls, path: Path) -> OrchestratorConfig:
        """Load a configuration from a JSON file.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid.
        """
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read config {path}: {e}") from e
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config {path}: {e}") from e


def load_config(path: Path | None = None) -> OrchestratorConfig:
    """Resolve the active configuration.

    Uses *path* if given, else the ``GRIPFLOW_CONFIG`` environment variable,
    else built-in defaults.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else None
    if path is None:
        logger.info("No config file given, using defaults")
        return OrchestratorConfig()
    logger.info("Loading config from %s", path)
    return OrchestratorConfig.from_json_file(path)
