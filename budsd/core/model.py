"""Core data models used across the dispatcher, daemon, and CLI."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any


@dataclass(frozen=True)
class TransportSpec:
    type: str
    channel: int | None = None
    service_uuid: str | None = None
    write_char_uuid: str | None = None
    notify_char_uuid: str | None = None
    write_with_response: bool = True
    timeout_s: float = 5.0


@dataclass(frozen=True)
class EnumFeature:
    type: str
    values: dict[str, bytes]


@dataclass(frozen=True)
class Plugin:
    id: str
    name: str
    transport: TransportSpec
    features: dict[str, EnumFeature]


class EqualizerType(IntEnum):
    NORMAL = 0
    BASS_BOOST = 1
    SOFT = 2
    DYNAMIC = 3
    CLEAR = 4
    TREBLE_BOOST = 5

    @classmethod
    def decode(cls, value: int) -> EqualizerType:
        """Map a raw preset number to a preset; unknown numbers fall back to NORMAL."""
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL

    @property
    def wire_name(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class DeviceState:
    """Last settings the device confirmed."""

    address: str
    noise_reduction: bool = False
    touchpads_blocked: bool = False
    equalizer_type: EqualizerType = EqualizerType.NORMAL


@dataclass
class DeviceConfig:
    auto_pause_music: bool = True
    auto_resume_music: bool = True
    low_battery_notification: bool = False


@dataclass(frozen=True)
class Request:
    cmd: str
    device: str | None = None
    opt_param1: str | None = None
    opt_param2: str | None = None

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> Request:
        return cls(
            cmd=doc["cmd"],
            device=doc.get("device"),
            opt_param1=doc.get("opt_param1"),
            opt_param2=doc.get("opt_param2"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Response:
    status: str
    device: str
    message: str | None = None
    payload: Any = None

    @classmethod
    def success(cls, device: str, payload: Any = None) -> Response:
        return cls(status="success", device=device, payload=payload)

    @classmethod
    def error(cls, device: str, message: str) -> Response:
        return cls(status="error", device=device, message=message)

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> Response:
        return cls(
            status=doc["status"],
            device=doc.get("device") or "",
            message=doc.get("message"),
            payload=doc.get("payload"),
        )

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "device": self.device,
            "message": self.message,
            "payload": self.payload,
        }


def status_payload(state: DeviceState, plugin_id: str) -> dict[str, Any]:
    """Build the get_status snapshot for a device."""
    return {
        "address": state.address,
        "plugin": plugin_id,
        "noise_reduction": state.noise_reduction,
        "touchpads_blocked": state.touchpads_blocked,
        "equalizer_type": state.equalizer_type.wire_name,
    }
