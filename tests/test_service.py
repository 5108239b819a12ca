from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from budsd.core.errors import DeviceSelectionError
from budsd.core.model import Request, TransportSpec
from budsd.daemon.service import DaemonService

MAC = "AA:BB:CC:11:22:33"


class FakeTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, bytes, int | None]] = []

    def send(self, mac: str, payload: bytes, spec: TransportSpec) -> bytes | None:
        self.calls.append((mac, payload, spec.channel))
        return None


@pytest.fixture(autouse=True)
def _isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def test_connect_registers_device_and_default_config(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    service = DaemonService(config_path, transport=FakeTransport())

    handle = service.connect(MAC.lower(), "galaxy_buds_live")

    assert handle.address == MAC
    assert service.registry.resolve(None) == MAC
    assert service.config_store.has_device_config(MAC)
    assert yaml.safe_load(config_path.read_text(encoding="utf-8"))["devices"][MAC] == {
        "auto_pause_music": True,
        "auto_resume_music": True,
        "low_battery_notification": False,
    }


def test_connect_keeps_existing_config(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f'devices:\n  "{MAC}":\n    low_battery_notification: true\n',
        encoding="utf-8",
    )
    service = DaemonService(config_path, transport=FakeTransport())

    service.connect(MAC, "galaxy_buds_live")

    assert service.config_store.get_device_config(MAC).low_battery_notification is True


def test_packaged_plugin_frames_reach_transport(tmp_path: Path) -> None:
    transport = FakeTransport()
    service = DaemonService(tmp_path / "config.yaml", transport=transport)
    service.connect_all([MAC], "galaxy_buds_live")

    response = service.dispatcher.dispatch(
        Request(cmd="set_value", device=MAC, opt_param1="equalizer", opt_param2="1")
    )

    assert response is not None
    assert response.status == "success"
    assert transport.calls == [(MAC, bytes.fromhex("fd040086011fa1dd"), 1)]


@pytest.mark.parametrize(("address", "plugin"), [("AA:BB:CC", "galaxy_buds_live"), (MAC, "unknown")])
def test_connect_rejects_bad_input(tmp_path: Path, address: str, plugin: str) -> None:
    service = DaemonService(tmp_path / "config.yaml", transport=FakeTransport())

    with pytest.raises(DeviceSelectionError):
        service.connect(address, plugin)
    assert service.registry.count() == 0
