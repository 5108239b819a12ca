"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from budsd.core.model import TransportSpec


class Transport(Protocol):
    def send(self, mac: str, payload: bytes, spec: TransportSpec) -> bytes | None:
        """Write payload to a device and return its answer, if any.

        Returning at all means the device accepted the payload; failures raise
        a ``TransportError``.
        """
