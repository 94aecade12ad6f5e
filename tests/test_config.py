"""Tests for configuration loading and validation."""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest
from pydantic import ValidationError

from gripflow.config import CONFIG_ENV_VAR, OrchestratorConfig, load_config
from gripflow.errors import ConfigurationError

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "default.json"


def test_defaults() -> None:
    config = OrchestratorConfig()

    assert config.tick_period == 0.1
    assert config.service_timeout == 5.0
    assert config.settle_delay == 3.0
    assert config.preferred_pick_angle == pytest.approx(math.pi / 2)
    assert config.rail.group_name == "robot_rail"
    assert config.rail.wait_pose_name == "RAIL_ARM_WAIT"
    assert config.arm.controller_name == "robot_controller"
    assert config.planning.planning_attempts == 4
    assert config.planning.place_yaw_tolerance == 3.14
    assert config.monitor.attach_timeout == 2.0


def test_shipped_config_matches_defaults() -> None:
    assert OrchestratorConfig.from_json_file(DEFAULT_CONFIG) == OrchestratorConfig()


def test_partial_override(tmp_path: Path) -> None:
    path = tmp_path / "cell.json"
    path.write_text(json.dumps({"settleDelay": 1.5, "monitor": {"attachTimeout": 4.0}}))

    config = OrchestratorConfig.from_json_file(path)

    assert config.settle_delay == 1.5
    assert config.monitor.attach_timeout == 4.0
    assert config.monitor.retention_period == 0.2


def test_shared_group_names_rejected() -> None:
    rail = {"groupName": "robot", "controllerName": "a", "waitPoseName": "W"}
    arm = {"groupName": "robot", "controllerName": "b", "waitPoseName": "W"}
    with pytest.raises(ValidationError, match="share group name"):
        OrchestratorConfig.model_validate({"rail": rail, "arm": arm})


def test_invalid_file_raises_configuration_error(tmp_path: Path) -> None:
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(ConfigurationError, match="Cannot read"):
        OrchestratorConfig.from_json_file(bad_json)

    bad_value = tmp_path / "neg.json"
    bad_value.write_text(json.dumps({"tickPeriod": -1}))
    with pytest.raises(ConfigurationError, match="Invalid config"):
        OrchestratorConfig.from_json_file(bad_value)

    with pytest.raises(ConfigurationError):
        OrchestratorConfig.from_json_file(tmp_path / "missing.json")


def test_load_config_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "cell.json"
    path.write_text(json.dumps({"tickPeriod": 0.05}))

    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert load_config().tick_period == 0.1

    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config().tick_period == 0.05
