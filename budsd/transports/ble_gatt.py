"""BLE GATT transport implementation."""

from __future__ import annotations

import asyncio
import logging

from budsd.core.errors import (
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)
from budsd.core.model import TransportSpec

LOGGER = logging.getLogger(__name__)


class BLEGATTTransport:
    def send(self, mac: str, payload: bytes, spec: TransportSpec) -> bytes | None:
        if not spec.write_char_uuid:
            raise TransportConnectError(f"No BLE write characteristic configured for {mac}")

        try:
            from bleak import BleakClient  # type: ignore
        except ImportError as exc:  # pragma: no cover - import failure path
            raise TransportConnectError(
                "BLE transport requires 'bleak'. Install budsd[ble] and retry."
            ) from exc

        async def _run() -> bytes | None:
            answered: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()

            def _notify_handler(_: object, data: bytearray) -> None:
                if not answered.done():
                    answered.set_result(bytes(data))

            async with BleakClient(mac, timeout=spec.timeout_s) as client:
                if not client.is_connected:
                    raise TransportConnectError(f"BLE connect failed for {mac}")

                if spec.notify_char_uuid:
                    await client.start_notify(spec.notify_char_uuid, _notify_handler)
                try:
                    await client.write_gatt_char(
                        spec.write_char_uuid,
                        payload,
                        response=spec.write_with_response,
                    )
                    if not spec.notify_char_uuid:
                        return None
                    try:
                        return await asyncio.wait_for(answered, timeout=spec.timeout_s)
                    except asyncio.TimeoutError as exc:
                        raise TransportTimeoutError(
                            f"Timed out waiting for BLE notification on {spec.notify_char_uuid}"
                        ) from exc
                finally:
                    if spec.notify_char_uuid:
                        try:
                            await client.stop_notify(spec.notify_char_uuid)
                        except Exception as exc:
                            LOGGER.debug("stop_notify on %s failed: %s", spec.notify_char_uuid, exc)

        LOGGER.debug("BLE %s %s <- %s", mac, spec.write_char_uuid, payload.hex())
        try:
            return asyncio.run(_run())
        except (TransportTimeoutError, TransportConnectError):
            raise
        except Exception as exc:
            raise TransportSendError(f"BLE GATT send failed: {exc}") from exc
