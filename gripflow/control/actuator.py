"""Actuator (vacuum gripper) control."""

from __future__ import annotations

import logging

from gripflow.errors import ServiceUnavailable
from gripflow.services import ActuatorService

logger = logging.getLogger(__name__)


class ActuatorController:
    """Synchronous engage/disengage requests with no retry.

    ``set_actuator`` returns ``False`` on transport failure or when the
    service reports failure; the caller decides whether that is fatal.
    """

    def __init__(self, service: ActuatorService) -> None:
        self._service = service

    async def set_actuator(self, enable: bool) -> bool:
        state = "on" if enable else "off"
        try:
            ok = await self._service.set_enabled(enable)
        except ServiceUnavailable as e:
            logger.error("Actuator %s request failed: %s", state, e)
            return False
        if not ok:
            logger.error("Actuator service rejected %s request", state)
            return False
        logger.info("Actuator %s", state)
        return True
