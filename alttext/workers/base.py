"""Base service: explicit start/stop lifecycle and command handling shared by pipeline services."""

import logging
from abc import ABC
from typing import Any

from alttext.core.logging import get_flight_logger
from alttext.models.entities import ServiceState

_log = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Base for long-lived services. Subclasses extend _on_start/_on_stop and handle_signal.

    start() and stop() are idempotent. A service is offline until started.
    """

    def __init__(self, service_id: str) -> None:
        self.service_id = service_id
        self._state = ServiceState.offline

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state != ServiceState.offline

    def _set_state(self, new_state: ServiceState) -> None:
        if new_state != self._state:
            _log.debug("%s: %s -> %s", self.service_id, self._state.value, new_state.value)
        self._state = new_state

    async def _on_start(self) -> None:
        return None

    async def _on_stop(self) -> None:
        return None

    async def start(self) -> None:
        if self.is_active:
            return
        await self._on_start()
        self._set_state(ServiceState.idle)
        _log.info("%s started", self.service_id)

    async def stop(self) -> None:
        if not self.is_active:
            return
        try:
            await self._on_stop()
        finally:
            self._set_state(ServiceState.offline)
        _log.info("%s stopped", self.service_id)

    async def handle_signal(self, command: str, payload: dict[str, Any] | None = None) -> Any:
        """
        Default command handler: supports forensic_dump (payload may name an image_id).
        Subclasses should call super().handle_signal(command, payload) for commands they do not own.
        """
        if command == "forensic_dump":
            fl = get_flight_logger()
            if fl is None:
                _log.warning("forensic_dump requested but logging is not set up")
                return None
            image_id = (payload or {}).get("image_id")
            return fl.dump(self.service_id, image_id)
        raise ValueError(f"Unknown command: {command}")
