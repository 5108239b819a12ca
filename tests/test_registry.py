from __future__ import annotations

import pytest

from budsd.core.errors import FeatureResolutionError
from budsd.core.model import DeviceState, EnumFeature, Plugin, TransportSpec
from budsd.core.registry import DeviceHandle, DeviceRegistry


class FakeTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, bytes, TransportSpec]] = []

    def send(self, mac: str, payload: bytes, spec: TransportSpec) -> bytes | None:
        self.calls.append((mac, payload, spec))
        return bytes.fromhex("beef")


def _plugin(transport: TransportSpec) -> Plugin:
    return Plugin(
        id="test_buds",
        name="Test Buds",
        transport=transport,
        features={"noise_reduction": EnumFeature(type="enum", values={"on": b"\x98\x01"})},
    )


RFCOMM = TransportSpec(type="rfcomm", channel=3)
BLE = TransportSpec(
    type="ble",
    service_uuid="0000180f-0000-1000-8000-00805f9b34fb",
    write_char_uuid="00002a19-0000-1000-8000-00805f9b34fb",
)


def test_resolve_exact_address_case_insensitive() -> None:
    registry = DeviceRegistry()
    registry.add(DeviceHandle("aa:bb:cc:11:22:33", _plugin(RFCOMM), transport=FakeTransport()))
    registry.add(DeviceHandle("AA:BB:CC:44:55:66", _plugin(RFCOMM), transport=FakeTransport()))

    assert registry.count() == 2
    assert registry.resolve("aa:bb:cc:11:22:33") == "AA:BB:CC:11:22:33"
    assert registry.resolve("AA:BB:CC") is None
    assert registry.resolve(None) is None
    assert registry.resolve("") is None


def test_resolve_defaults_to_sole_device() -> None:
    registry = DeviceRegistry()
    assert registry.resolve(None) is None

    registry.add(DeviceHandle("AA:BB:CC:11:22:33", _plugin(RFCOMM), transport=FakeTransport()))
    assert registry.resolve(None) == "AA:BB:CC:11:22:33"
    assert registry.resolve("") == "AA:BB:CC:11:22:33"

    registry.remove("aa:bb:cc:11:22:33")
    assert len(registry) == 0


def test_send_routes_by_plugin_transport() -> None:
    rfcomm, ble = FakeTransport(), FakeTransport()

    DeviceHandle("AA:BB:CC:11:22:33", _plugin(RFCOMM), transport=rfcomm, ble_transport=ble).send("noise_reduction", "on")
    assert rfcomm.calls == [("AA:BB:CC:11:22:33", b"\x98\x01", RFCOMM)]
    assert ble.calls == []

    answer = DeviceHandle("AA:BB:CC:11:22:33", _plugin(BLE), transport=rfcomm, ble_transport=ble).send(
        "noise_reduction", "on"
    )
    assert answer == bytes.fromhex("beef")
    assert ble.calls == [("AA:BB:CC:11:22:33", b"\x98\x01", BLE)]


def test_send_unknown_feature_or_value() -> None:
    transport = FakeTransport()
    handle = DeviceHandle("AA:BB:CC:11:22:33", _plugin(RFCOMM), transport=transport)

    with pytest.raises(FeatureResolutionError, match="Available: noise_reduction"):
        handle.send("equalizer", "normal")
    with pytest.raises(FeatureResolutionError, match="Allowed: on"):
        handle.send("noise_reduction", "off")
    assert transport.calls == []


def test_commit_rejects_foreign_state() -> None:
    handle = DeviceHandle("AA:BB:CC:11:22:33", _plugin(RFCOMM), transport=FakeTransport())

    with pytest.raises(ValueError):
        handle.commit(DeviceState(address="AA:BB:CC:44:55:66", noise_reduction=True))
    assert handle.state.noise_reduction is False
