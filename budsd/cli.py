"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from budsd.api import Client
from budsd.core.errors import BudsdError
from budsd.core.settings import default_config_path, default_socket_path
from budsd.daemon.service import DaemonService

app = typer.Typer(help="Local control daemon for Bluetooth earbuds")

_DEFAULT_PLUGIN = "galaxy_buds_live"

DeviceOption = typer.Option(None, "--device", help="Device address; may be omitted with one device connected")
SocketOption = typer.Option(None, "--socket", help="Daemon socket path")


def _build_service(config_path: Path) -> DaemonService:
    service = DaemonService(config_path)
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _client(socket_path: Path | None) -> Client:
    return Client(socket_path or default_socket_path())


@app.command("serve")
def serve(
    devices: list[str] = typer.Option(..., "--device", help="Address of a connected device (repeatable)"),
    plugin: str = typer.Option(_DEFAULT_PLUGIN, "--plugin", help="Plugin ID used for the devices"),
    socket_path: Path | None = SocketOption,
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Register the given devices and answer requests on the control socket."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        service = _build_service(config or default_config_path())
        service.connect_all(devices, plugin)
        server = service.build_server(socket_path or default_socket_path())
    except (BudsdError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            typer.echo("Shutting down", err=True)


@app.command("status")
def status(device: str | None = DeviceOption, socket_path: Path | None = SocketOption) -> None:
    """Show the last confirmed state of a device."""
    try:
        result = _client(socket_path).get_status(device=device)
    except BudsdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"{result.address} ({result.plugin})")
    typer.echo(f"  noise_reduction: {'on' if result.noise_reduction else 'off'}")
    typer.echo(f"  lock_touchpad: {'on' if result.touchpads_blocked else 'off'}")
    typer.echo(f"  equalizer: {result.equalizer_type}")


@app.command("set")
def set_value(
    key: str,
    value: str,
    device: str | None = DeviceOption,
    socket_path: Path | None = SocketOption,
) -> None:
    """Set a device value: noise_reduction, lock_touchpad (true/false) or equalizer (0-5)."""
    try:
        address = _client(socket_path).set_value(key, value, device=device)
    except BudsdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Set {key}={value} on {address}")


@app.command("toggle")
def toggle_value(
    key: str,
    device: str | None = DeviceOption,
    socket_path: Path | None = SocketOption,
) -> None:
    """Flip noise_reduction or lock_touchpad."""
    try:
        address = _client(socket_path).toggle_value(key, device=device)
    except BudsdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Toggled {key} on {address}")


@app.command("config")
def set_config(
    key: str,
    value: str,
    device: str | None = DeviceOption,
    socket_path: Path | None = SocketOption,
) -> None:
    """Change a stored preference: auto_pause, auto_play, low_battery_notification."""
    try:
        address = _client(socket_path).set_config(key, value, device=device)
    except BudsdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Saved {key}={value} for {address}")


@app.command("plugins")
def list_plugins(config: Path | None = typer.Option(None, "--config", help="Config file path")) -> None:
    """List available plugins and their features."""
    try:
        service = _build_service(config or default_config_path())
    except BudsdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    plugins = service.list_plugins()
    if not plugins:
        typer.echo("No plugins loaded")
        raise typer.Exit(code=1)
    for plugin in plugins:
        typer.echo(f"{plugin.id}: {plugin.name} ({plugin.transport.type})")
        for feature, spec in sorted(plugin.features.items()):
            typer.echo(f"  {feature}: {', '.join(sorted(spec.values))}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
