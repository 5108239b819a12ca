"""Daemon assembly: plugins, config, connected devices, socket server."""

from __future__ import annotations

import logging
import re
import socket
from collections.abc import Iterable
from pathlib import Path

from budsd.core.config_store import ConfigStore
from budsd.core.dispatcher import CommandDispatcher
from budsd.core.errors import ConfigSaveError, DeviceSelectionError
from budsd.core.model import Plugin
from budsd.core.plugin_loader import load_plugins
from budsd.core.registry import DeviceHandle, DeviceRegistry
from budsd.daemon.server import DaemonServer
from budsd.transports.base import Transport

LOGGER = logging.getLogger(__name__)

_MAC_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){5}$", re.IGNORECASE)


class DaemonService:
    def __init__(
        self,
        config_path: Path,
        *,
        transport: Transport | None = None,
        ble_transport: Transport | None = None,
    ) -> None:
        loaded = load_plugins()
        self.plugins = loaded.plugins
        self.load_warnings = loaded.warnings
        self.runtime_warnings = _runtime_warnings()
        self.config_store = ConfigStore.load(config_path)
        self.registry = DeviceRegistry()
        self.dispatcher = CommandDispatcher(self.registry, self.config_store)
        self._transport = transport
        self._ble_transport = ble_transport

    def list_plugins(self) -> list[Plugin]:
        return sorted(self.plugins.values(), key=lambda p: p.id)

    def connect(self, address: str, plugin_id: str) -> DeviceHandle:
        """Register a device that is already paired and reachable.

        Gives the device a default config entry when it has none yet.
        """
        if not _MAC_RE.match(address):
            raise DeviceSelectionError(f"'{address}' is not a Bluetooth address (AA:BB:CC:DD:EE:FF)")
        plugin = self.plugins.get(plugin_id)
        if plugin is None:
            raise DeviceSelectionError(f"Unknown plugin '{plugin_id}'. Use 'budsd plugins' to inspect available plugins.")

        handle = DeviceHandle(
            address,
            plugin,
            transport=self._transport,
            ble_transport=self._ble_transport,
        )
        with self.registry.lock:
            self.registry.add(handle)
        with self.config_store.lock:
            if self.config_store.ensure_device_config(handle.address):
                try:
                    self.config_store.save()
                except ConfigSaveError as exc:
                    LOGGER.warning("Could not save default config for %s: %s", handle.address, exc)
        return handle

    def connect_all(self, addresses: Iterable[str], plugin_id: str) -> list[DeviceHandle]:
        return [self.connect(address, plugin_id) for address in addresses]

    def build_server(self, socket_path: Path) -> DaemonServer:
        return DaemonServer(socket_path, self.dispatcher)


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        warnings.append(
            "Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM; RFCOMM device commands will fail."
        )
    return tuple(warnings)
