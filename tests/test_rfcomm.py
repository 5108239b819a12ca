from __future__ import annotations

import socket

import pytest

from budsd.core.errors import TransportConnectError
from budsd.core.model import TransportSpec
from budsd.transports.rfcomm import RFCOMMTransport


def test_missing_bluetooth_constants_raises_clean_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delattr(socket, "AF_BLUETOOTH", raising=False)
    monkeypatch.delattr(socket, "BTPROTO_RFCOMM", raising=False)

    transport = RFCOMMTransport()
    with pytest.raises(TransportConnectError):
        transport.send("AA:BB:CC:11:22:33", b"\xfd\x04\x00", TransportSpec(type="rfcomm", channel=1))


def test_missing_channel_raises_clean_error() -> None:
    with pytest.raises(TransportConnectError, match="No RFCOMM channel"):
        RFCOMMTransport().send("AA:BB:CC:11:22:33", b"\xfd", TransportSpec(type="rfcomm"))


class FakeBluetoothSocket:
    instances: list[FakeBluetoothSocket] = []

    def __init__(self, family: int, kind: int, proto: int) -> None:
        self.family = family
        self.proto = proto
        self.timeout: float | None = None
        self.connected_to: tuple[str, int] | None = None
        self.sent = b""
        self.closed = False
        FakeBluetoothSocket.instances.append(self)

    def __enter__(self) -> FakeBluetoothSocket:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def settimeout(self, timeout: float) -> None:
        self.timeout = timeout

    def connect(self, address: tuple[str, int]) -> None:
        self.connected_to = address

    def sendall(self, data: bytes) -> None:
        self.sent += data

    def recv(self, size: int) -> bytes:
        raise AssertionError("RFCOMM send must not wait for a reply")

    def close(self) -> None:
        self.closed = True


def test_send_returns_after_write_without_reading(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeBluetoothSocket.instances = []
    monkeypatch.setattr(socket, "AF_BLUETOOTH", 31, raising=False)
    monkeypatch.setattr(socket, "BTPROTO_RFCOMM", 3, raising=False)
    monkeypatch.setattr(socket, "socket", FakeBluetoothSocket)

    result = RFCOMMTransport().send(
        "AA:BB:CC:11:22:33", b"\xfd\x04\x00\x98\x01", TransportSpec(type="rfcomm", channel=1, timeout_s=4.0)
    )

    assert result is None
    [bt_socket] = FakeBluetoothSocket.instances
    assert (bt_socket.family, bt_socket.proto) == (31, 3)
    assert bt_socket.timeout == 4.0
    assert bt_socket.connected_to == ("AA:BB:CC:11:22:33", 1)
    assert bt_socket.sent == b"\xfd\x04\x00\x98\x01"
    assert bt_socket.closed is True
