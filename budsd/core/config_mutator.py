"""Single-field updates of a device's stored preferences."""

from __future__ import annotations

import logging

from budsd.core.config_store import ConfigStore
from budsd.core.errors import ConfigNotFoundError, ConfigSaveError, InvalidKeyError, MissingParameterError

LOGGER = logging.getLogger(__name__)

_TRUTHY = frozenset({"true", "1", "yes", "y", "on"})

CONFIG_KEYS = {
    "auto_pause": "auto_pause_music",
    "auto_play": "auto_resume_music",
    "low_battery_notification": "low_battery_notification",
}


def str_to_bool(value: str) -> bool:
    """Lenient bool parsing: known truthy tokens are True, anything else False."""
    return value.strip().lower() in _TRUTHY


class ConfigMutator:
    """Applies one preference change and persists the store.

    The caller must hold ``store.lock``. A failed save keeps the in-memory
    change, so memory and disk disagree until the next successful save.
    """

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def apply(self, address: str, key: str | None, value: str | None) -> None:
        config = self.store.get_device_config(address)
        if config is None:
            raise ConfigNotFoundError("Device has no config!")
        if key is None or value is None:
            raise MissingParameterError("Missing parameter")

        field_name = CONFIG_KEYS.get(key)
        if field_name is None:
            raise InvalidKeyError("Invalid key")

        setattr(config, field_name, str_to_bool(value))
        try:
            self.store.save()
        except ConfigSaveError as exc:
            LOGGER.warning("Config for %s changed in memory but not saved: %s", address, exc)
            raise ConfigSaveError(f"Error saving config: {exc}") from exc
        LOGGER.info("%s config %s=%s", address, field_name, getattr(config, field_name))
