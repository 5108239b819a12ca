"""Stable public API for building tooling on top of budsd.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from budsd.core.errors import (
    BudsdError,
    DaemonConnectionError,
    DaemonResponseError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from budsd.core.model import EqualizerType, Request, Response
from budsd.core.settings import default_socket_path
from budsd.daemon.client import SocketClient

__all__ = [
    "BudsdError",
    "DaemonConnectionError",
    "DaemonResponseError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "EqualizerType",
    "Request",
    "Response",
    "DeviceStatus",
    "Client",
]


@dataclass(frozen=True)
class DeviceStatus:
    """Mirrored state of one device as reported by ``get_status``."""

    address: str
    plugin: str
    noise_reduction: bool
    touchpads_blocked: bool
    equalizer_type: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DeviceStatus:
        return cls(
            address=payload["address"],
            plugin=payload["plugin"],
            noise_reduction=bool(payload["noise_reduction"]),
            touchpads_blocked=bool(payload["touchpads_blocked"]),
            equalizer_type=payload["equalizer_type"],
        )


class Client:
    """Public client for a running budsd daemon.

    Each call opens its own socket connection. Error responses are raised as
    `DaemonResponseError`; an unreachable daemon as `DaemonConnectionError`.
    """

    def __init__(self, socket_path: Path | None = None, *, timeout_s: float = 30.0) -> None:
        self._socket = SocketClient(socket_path or default_socket_path(), timeout_s=timeout_s)

    @property
    def socket_path(self) -> Path:
        return self._socket.path

    def request(self, request: Request) -> Response:
        """Send a raw request and return the raw response, errors included."""
        return self._socket.request(request)

    def get_status(self, *, device: str | None = None) -> DeviceStatus:
        response = self._checked(Request(cmd="get_status", device=device))
        return DeviceStatus.from_payload(response.payload)

    def set_value(self, key: str, value: str | bool | int, *, device: str | None = None) -> str:
        return self._checked(
            Request(cmd="set_value", device=device, opt_param1=key, opt_param2=_as_param(value))
        ).device

    def toggle_value(self, key: str, *, device: str | None = None) -> str:
        return self._checked(Request(cmd="toggle_value", device=device, opt_param1=key)).device

    def set_config(self, key: str, value: str | bool, *, device: str | None = None) -> str:
        return self._checked(
            Request(cmd="set_config", device=device, opt_param1=key, opt_param2=_as_param(value))
        ).device

    def _checked(self, request: Request) -> Response:
        response = self._socket.request(request)
        if not response.ok:
            raise DaemonResponseError(response.message or f"{request.cmd} failed")
        return response


def _as_param(value: str | bool | int) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
