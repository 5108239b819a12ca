from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from budsd import cli
from budsd.api import DeviceStatus
from budsd.core.errors import DaemonConnectionError, DaemonResponseError

MAC = "AA:BB:CC:11:22:33"


class FakeClient:
    calls: list[tuple] = []

    def __init__(self, socket_path: Path | None = None, **_: object) -> None:
        self.socket_path = socket_path

    def get_status(self, *, device: str | None = None) -> DeviceStatus:
        self.calls.append(("get_status", device))
        return DeviceStatus(
            address=MAC,
            plugin="galaxy_buds_live",
            noise_reduction=True,
            touchpads_blocked=False,
            equalizer_type="dynamic",
        )

    def set_value(self, key: str, value: str, *, device: str | None = None) -> str:
        self.calls.append(("set_value", key, value, device))
        return MAC

    def toggle_value(self, key: str, *, device: str | None = None) -> str:
        self.calls.append(("toggle_value", key, device))
        return MAC

    def set_config(self, key: str, value: str, *, device: str | None = None) -> str:
        self.calls.append(("set_config", key, value, device))
        return MAC


runner = CliRunner()


@pytest.fixture(autouse=True)
def _fake_client(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeClient.calls = []
    monkeypatch.setattr(cli, "Client", FakeClient)


def test_status_command() -> None:
    result = runner.invoke(cli.app, ["status", "--device", MAC])
    assert result.exit_code == 0
    assert f"{MAC} (galaxy_buds_live)" in result.stdout
    assert "noise_reduction: on" in result.stdout
    assert "lock_touchpad: off" in result.stdout
    assert "equalizer: dynamic" in result.stdout
    assert FakeClient.calls == [("get_status", MAC)]


def test_set_command() -> None:
    result = runner.invoke(cli.app, ["set", "equalizer", "3"])
    assert result.exit_code == 0
    assert f"Set equalizer=3 on {MAC}" in result.stdout
    assert FakeClient.calls == [("set_value", "equalizer", "3", None)]


def test_toggle_command() -> None:
    result = runner.invoke(cli.app, ["toggle", "lock_touchpad", "--device", MAC])
    assert result.exit_code == 0
    assert f"Toggled lock_touchpad on {MAC}" in result.stdout


def test_config_command() -> None:
    result = runner.invoke(cli.app, ["config", "auto_play", "false"])
    assert result.exit_code == 0
    assert f"Saved auto_play=false for {MAC}" in result.stdout
    assert FakeClient.calls == [("set_config", "auto_play", "false", None)]


def test_error_response_is_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingClient(FakeClient):
        def set_value(self, key: str, value: str, *, device: str | None = None) -> str:
            raise DaemonResponseError("Device not found")

    monkeypatch.setattr(cli, "Client", FailingClient)
    result = runner.invoke(cli.app, ["set", "noise_reduction", "true", "--device", "00:11:22:33:44:55"])
    assert result.exit_code == 1
    assert "Error: Device not found" in result.stderr
    assert "Traceback" not in result.stdout
    assert "Traceback" not in result.stderr


def test_unreachable_daemon_is_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    class DownClient(FakeClient):
        def get_status(self, *, device: str | None = None) -> DeviceStatus:
            raise DaemonConnectionError("Could not talk to budsd at /tmp/budsd.sock: [Errno 2] No such file or directory")

    monkeypatch.setattr(cli, "Client", DownClient)
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 1
    assert "Error: Could not talk to budsd" in result.stderr


def test_plugins_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    result = runner.invoke(cli.app, ["plugins", "--config", str(tmp_path / "config.yaml")])
    assert result.exit_code == 0
    assert "galaxy_buds_live: Galaxy Buds Live (rfcomm)" in result.stdout
    assert "equalizer: bass_boost, clear, dynamic, normal, soft, treble_boost" in result.stdout
    assert "noise_reduction: off, on" in result.stdout


def test_serve_rejects_bad_address(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    result = runner.invoke(
        cli.app,
        ["serve", "--device", "not-a-mac", "--config", str(tmp_path / "config.yaml"), "--socket", str(tmp_path / "s")],
    )
    assert result.exit_code == 1
    assert "is not a Bluetooth address" in result.stderr


def test_serve_rejects_unknown_plugin(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    result = runner.invoke(
        cli.app,
        ["serve", "--device", MAC, "--plugin", "nope", "--config", str(tmp_path / "config.yaml")],
    )
    assert result.exit_code == 1
    assert "Unknown plugin 'nope'" in result.stderr
