"""Registry of connected devices and their mirrored state."""

from __future__ import annotations

import logging
import threading

from budsd.core.errors import FeatureResolutionError
from budsd.core.model import DeviceState, Plugin
from budsd.transports.base import Transport
from budsd.transports.ble_gatt import BLEGATTTransport
from budsd.transports.rfcomm import RFCOMMTransport

LOGGER = logging.getLogger(__name__)


class DeviceHandle:
    """One connected device: where it lives, how to talk to it, what it last confirmed."""

    def __init__(
        self,
        address: str,
        plugin: Plugin,
        *,
        transport: Transport | None = None,
        ble_transport: Transport | None = None,
        state: DeviceState | None = None,
    ) -> None:
        self.address = address.upper()
        self.plugin = plugin
        self.rfcomm_transport = transport or RFCOMMTransport()
        self.ble_transport = ble_transport or BLEGATTTransport()
        self.state = state or DeviceState(address=self.address)

    def send(self, feature: str, value: str) -> bytes | None:
        """Write the plugin payload for ``feature=value`` to the device."""
        feature_spec = self.plugin.features.get(feature)
        if feature_spec is None:
            available = ", ".join(sorted(self.plugin.features))
            raise FeatureResolutionError(
                f"Plugin '{self.plugin.id}' does not define feature '{feature}'. Available: {available}"
            )
        payload = feature_spec.values.get(value)
        if payload is None:
            allowed = ", ".join(sorted(feature_spec.values))
            raise FeatureResolutionError(
                f"Feature '{feature}' does not support value '{value}'. Allowed: {allowed}"
            )

        transport_spec = self.plugin.transport
        if transport_spec.type == "rfcomm":
            transport = self.rfcomm_transport
        elif transport_spec.type == "ble":
            transport = self.ble_transport
        else:
            raise FeatureResolutionError(
                f"Unsupported transport type '{transport_spec.type}' for plugin '{self.plugin.id}'."
            )
        return transport.send(self.address, payload, transport_spec)

    def commit(self, state: DeviceState) -> None:
        if state.address != self.address:
            raise ValueError(f"State for {state.address} cannot be committed to {self.address}")
        self.state = state


class DeviceRegistry:
    """Connected devices keyed by upper-case address.

    ``lock`` guards every read and write of the handles, including device I/O
    done through them. Callers take it; the registry itself does not.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._devices: dict[str, DeviceHandle] = {}

    def add(self, handle: DeviceHandle) -> None:
        self._devices[handle.address] = handle
        LOGGER.info("Registered %s (%s)", handle.address, handle.plugin.id)

    def remove(self, address: str) -> None:
        if self._devices.pop(address.upper(), None) is not None:
            LOGGER.info("Unregistered %s", address.upper())

    def count(self) -> int:
        return len(self._devices)

    __len__ = count

    def resolve(self, device: str | None) -> str | None:
        """Map a request's device field to a registered address.

        Without a device the sole connected device is assumed; with several
        connected the caller has to name one.
        """
        if not device:
            if len(self._devices) == 1:
                return next(iter(self._devices))
            return None
        address = device.strip().upper()
        return address if address in self._devices else None

    def get(self, address: str) -> DeviceHandle:
        return self._devices[address]
