"""Best-effort controller switching."""

from __future__ import annotations

import logging

from gripflow.errors import ServiceUnavailable
from gripflow.services import ControllerSwitchService, Strictness

logger = logging.getLogger(__name__)


class ControllerSwitcher:
    """Activates and deactivates single controllers.

    Failures are logged and reported as ``False``; callers never need to
    handle an exception from a switch. Deactivating an already inactive
    controller is a no-op on the service side.
    """

    def __init__(self, service: ControllerSwitchService) -> None:
        self._service = service

    async def activate(self, controller_name: str) -> bool:
        return await self._switch(controller_name, activate=True)

    async def deactivate(self, controller_name: str) -> bool:
        return await self._switch(controller_name, activate=False)

    async def deactivate_all(self, controller_names: list[str]) -> bool:
        """Deactivate each controller in turn; True only if all succeeded."""
        results = [await self.deactivate(name) for name in controller_names]
        return all(results)

    async def _switch(self, controller_name: str, *, activate: bool) -> bool:
        start = [controller_name] if activate else []
        stop = [] if activate else [controller_name]
        verb = "activate" if activate else "deactivate"
        try:
            ok = await self._service.switch(start, stop, Strictness.BEST_EFFORT)
        except ServiceUnavailable as e:
            logger.error("Failed to %s controller %s: %s", verb, controller_name, e)
            return False
        if not ok:
            logger.error("Failed to %s controller %s", verb, controller_name)
            return False
        logger.debug("Controller %s: %sd", controller_name, verb)
        return True
