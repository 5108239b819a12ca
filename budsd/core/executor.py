"""Translation of key/value requests into device actions.

A change is planned first, producing the state the device will be in once it
accepts the payload, and only committed to the handle after ``send`` returns.
A send that raises leaves the mirrored state as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from budsd.core.errors import BudsdError, InvalidKeyError, ValueParseError
from budsd.core.model import DeviceState, EqualizerType
from budsd.core.registry import DeviceHandle

LOGGER = logging.getLogger(__name__)

# request key -> (plugin feature, mirrored attribute)
_BOOLEAN_KEYS = {
    "noise_reduction": ("noise_reduction", "noise_reduction"),
    "lock_touchpad": ("lock_touchpad", "touchpads_blocked"),
}
_EQUALIZER_KEY = "equalizer"


@dataclass(frozen=True)
class StateChange:
    key: str
    feature: str
    value: str
    state: DeviceState


def _on_off(value: bool) -> str:
    return "on" if value else "off"


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueParseError("could not parse value")


def parse_u8(value: str) -> int:
    try:
        number = int(value.strip(), 10)
    except ValueError:
        raise ValueParseError("could not parse value") from None
    if not 0 <= number <= 0xFF:
        raise ValueParseError("could not parse value")
    return number


class DeviceCommandExecutor:
    def plan_set(self, key: str, value: str, state: DeviceState) -> StateChange:
        if key in _BOOLEAN_KEYS:
            return self._boolean_change(key, parse_bool(value), state)
        if key == _EQUALIZER_KEY:
            preset = EqualizerType.decode(parse_u8(value))
            return StateChange(
                key=key,
                feature="equalizer",
                value=preset.wire_name,
                state=replace(state, equalizer_type=preset),
            )
        raise InvalidKeyError("Invalid key")

    def plan_toggle(self, key: str, state: DeviceState) -> StateChange:
        if key not in _BOOLEAN_KEYS:
            raise InvalidKeyError("Invalid key")
        _, attribute = _BOOLEAN_KEYS[key]
        return self._boolean_change(key, not getattr(state, attribute), state)

    def apply(self, handle: DeviceHandle, change: StateChange) -> None:
        try:
            handle.send(change.feature, change.value)
        except BudsdError:
            LOGGER.warning("%s rejected %s=%s", handle.address, change.key, change.value)
            raise
        handle.commit(change.state)
        LOGGER.info("%s confirmed %s=%s", handle.address, change.key, change.value)

    def execute(self, handle: DeviceHandle, key: str, value: str) -> None:
        self.apply(handle, self.plan_set(key, value, handle.state))

    def toggle(self, handle: DeviceHandle, key: str) -> None:
        self.apply(handle, self.plan_toggle(key, handle.state))

    @staticmethod
    def _boolean_change(key: str, value: bool, state: DeviceState) -> StateChange:
        feature, attribute = _BOOLEAN_KEYS[key]
        return StateChange(
            key=key,
            feature=feature,
            value=_on_off(value),
            state=replace(state, **{attribute: value}),
        )
