"""Per-device preferences persisted as YAML."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from budsd.core.errors import ConfigLoadError, ConfigSaveError
from budsd.core.model import DeviceConfig

LOGGER = logging.getLogger(__name__)
_CONFIG_FIELDS = frozenset(f.name for f in fields(DeviceConfig))


def _parse_entry(address: str, raw: Any, path: Path) -> DeviceConfig:
    if raw is None:
        return DeviceConfig()
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Config entry for {address} in {path} must be a mapping")
    unknown = set(raw) - _CONFIG_FIELDS
    if unknown:
        raise ConfigLoadError(f"Unknown config keys for {address} in {path}: {', '.join(sorted(unknown))}")
    for key, value in raw.items():
        if not isinstance(value, bool):
            raise ConfigLoadError(f"{address}.{key} in {path} must be true or false")
    return DeviceConfig(**raw)


class ConfigStore:
    """Device configs keyed by upper-case address, guarded by ``lock``.

    ``lock`` is independent of the device registry's lock and covers reads,
    writes, and ``save``.
    """

    def __init__(self, path: Path, devices: dict[str, DeviceConfig] | None = None) -> None:
        self.path = path
        self.lock = threading.Lock()
        self._devices = {address.upper(): cfg for address, cfg in (devices or {}).items()}

    @classmethod
    def load(cls, path: Path) -> ConfigStore:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.info("No config file at %s, starting empty", path)
            return cls(path)
        except OSError as exc:
            raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"Invalid YAML in {path}: {exc}") from exc

        if doc is None:
            return cls(path)
        if not isinstance(doc, dict) or not isinstance(doc.get("devices") or {}, dict):
            raise ConfigLoadError(f"Config file {path} must contain a 'devices' mapping")

        devices = {
            str(address): _parse_entry(str(address), raw, path)
            for address, raw in (doc.get("devices") or {}).items()
        }
        LOGGER.debug("Loaded config for %d device(s) from %s", len(devices), path)
        return cls(path, devices)

    def has_device_config(self, address: str) -> bool:
        return address.upper() in self._devices

    def get_device_config(self, address: str) -> DeviceConfig | None:
        return self._devices.get(address.upper())

    def ensure_device_config(self, address: str) -> bool:
        """Create a default entry for ``address``; return True if one was created."""
        key = address.upper()
        if key in self._devices:
            return False
        self._devices[key] = DeviceConfig()
        return True

    def to_document(self) -> dict[str, Any]:
        return {"devices": {address: asdict(cfg) for address, cfg in sorted(self._devices.items())}}

    def save(self) -> None:
        """Write the whole store, replacing the file atomically."""
        text = yaml.safe_dump(self.to_document(), sort_keys=True, default_flow_style=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ConfigSaveError(str(exc)) from exc
        LOGGER.debug("Saved config to %s", self.path)
