"""RFCOMM transport implementation using Python sockets."""

from __future__ import annotations

import logging
import socket

from budsd.core.errors import (
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)
from budsd.core.model import TransportSpec

LOGGER = logging.getLogger(__name__)


class RFCOMMTransport:
    def send(self, mac: str, payload: bytes, spec: TransportSpec) -> bytes | None:
        if spec.channel is None:
            raise TransportConnectError(f"No RFCOMM channel configured for {mac}")

        try:
            af_bluetooth = socket.AF_BLUETOOTH
            btproto_rfcomm = socket.BTPROTO_RFCOMM
        except AttributeError as exc:
            raise TransportConnectError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            ) from exc

        try:
            bt_socket = socket.socket(af_bluetooth, socket.SOCK_STREAM, btproto_rfcomm)
        except OSError as exc:
            raise TransportConnectError(f"Could not create RFCOMM socket: {exc}") from exc
        bt_socket.settimeout(spec.timeout_s)

        LOGGER.debug("RFCOMM %s ch%s <- %s", mac, spec.channel, payload.hex())
        with bt_socket:
            try:
                bt_socket.connect((mac, spec.channel))
            except TimeoutError as exc:
                raise TransportTimeoutError(
                    f"RFCOMM connect timed out for {mac} on channel {spec.channel}"
                ) from exc
            except OSError as exc:
                raise TransportConnectError(
                    f"RFCOMM connect failed for {mac} on channel {spec.channel}: {exc}"
                ) from exc

            try:
                bt_socket.sendall(payload)
            except OSError as exc:
                raise TransportSendError(f"RFCOMM send failed: {exc}") from exc

            return None
