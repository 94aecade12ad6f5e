"""Tests for the startup service readiness check."""

from __future__ import annotations

import asyncio

import pytest

from gripflow.errors import ServiceUnavailable
from gripflow.hardware.mock import MockGripper
from gripflow.services import wait_for_services


class _HangingService:
    """Service that never reports ready, whatever timeout it is given."""

    async def wait_until_ready(self, timeout: float) -> bool:
        await asyncio.sleep(3600)
        return True


class _BrokenService:
    async def wait_until_ready(self, timeout: float) -> bool:
        raise ConnectionError("no route to host")


async def test_all_services_ready() -> None:
    await wait_for_services({"actuator": MockGripper(), "planning": MockGripper()}, 0.1)


async def test_hanging_service_is_bounded() -> None:
    loop = asyncio.get_running_loop()
    started = loop.time()

    with pytest.raises(ServiceUnavailable, match="planning"):
        await wait_for_services({"actuator": MockGripper(), "planning": _HangingService()}, 0.05)

    assert loop.time() - started < 1.0


async def test_missing_services_are_all_named() -> None:
    absent = MockGripper()
    absent.available = False

    with pytest.raises(ServiceUnavailable) as exc_info:
        await wait_for_services(
            {"actuator": absent, "controller_switch": _BrokenService(), "planning": MockGripper()},
            0.05,
        )

    message = str(exc_info.value)
    assert "actuator" in message
    assert "controller_switch" in message
    assert "planning" not in message
