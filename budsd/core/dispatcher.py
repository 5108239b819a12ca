"""Request routing for the control socket.

Every request that touches shared state runs with the registry lock held from
device resolution until its delegate finishes, device I/O included, so device
commands from all connections are serialized. ``set_config`` additionally
takes the config store lock, always after the registry lock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from budsd.core.config_mutator import ConfigMutator
from budsd.core.config_store import ConfigStore
from budsd.core.errors import BudsdError, MissingParameterError
from budsd.core.executor import DeviceCommandExecutor
from budsd.core.model import Request, Response, status_payload
from budsd.core.registry import DeviceHandle, DeviceRegistry

LOGGER = logging.getLogger(__name__)

NO_DEVICE_CONNECTED = "No connected device found"
DEVICE_NOT_FOUND = "Device not found"


class CommandDispatcher:
    def __init__(
        self,
        registry: DeviceRegistry,
        config_store: ConfigStore,
        *,
        executor: DeviceCommandExecutor | None = None,
    ) -> None:
        self.registry = registry
        self.config_store = config_store
        self.executor = executor or DeviceCommandExecutor()
        self.config_mutator = ConfigMutator(config_store)
        self._handlers: dict[str, Callable[[Request, DeviceHandle], Response]] = {
            "get_status": self._get_status,
            "set_value": self._set_value,
            "toggle_value": self._toggle_value,
            "set_config": self._set_config,
        }

    def dispatch(self, request: Request) -> Response | None:
        """Run one request; None means the connection gets no reply."""
        handler = self._handlers.get(request.cmd)
        if handler is None:
            LOGGER.debug("Ignoring unknown command %r", request.cmd)
            return None

        with self.registry.lock:
            if self.registry.count() == 0:
                return Response.error("", NO_DEVICE_CONNECTED)

            address = self.registry.resolve(request.device)
            if address is None:
                return Response.error("", DEVICE_NOT_FOUND)

            LOGGER.info("%s -> %s", request.cmd, address)
            try:
                return handler(request, self.registry.get(address))
            except BudsdError as exc:
                LOGGER.info("%s on %s failed: %s", request.cmd, address, exc)
                return Response.error(address, str(exc))

    def _get_status(self, request: Request, handle: DeviceHandle) -> Response:
        return Response.success(handle.address, status_payload(handle.state, handle.plugin.id))

    def _set_value(self, request: Request, handle: DeviceHandle) -> Response:
        if request.opt_param1 is None or request.opt_param2 is None:
            raise MissingParameterError("Missing parameter")
        self.executor.execute(handle, request.opt_param1, request.opt_param2)
        return Response.success(handle.address)

    def _toggle_value(self, request: Request, handle: DeviceHandle) -> Response:
        if request.opt_param1 is None:
            raise MissingParameterError("Missing parameter")
        self.executor.toggle(handle, request.opt_param1)
        return Response.success(handle.address)

    def _set_config(self, request: Request, handle: DeviceHandle) -> Response:
        with self.config_store.lock:
            self.config_mutator.apply(handle.address, request.opt_param1, request.opt_param2)
        return Response.success(handle.address)
