"""Persistent per-install device identifier.

Every request carries the identifier, so lookup is best-effort: when the
secure store cannot be read or written a fresh, unpersisted id is returned for
that call instead of failing the request.
"""
from __future__ import annotations

import logging
import secrets
import time
from typing import NewType

from snapi.config.const import DEVICE_ID_KEY

from .keyring import CredentialStore

__all__ = ["DeviceId", "DeviceIdentityProvider", "generate_device_id"]

logger = logging.getLogger(__name__)

DeviceId = NewType("DeviceId", str)

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    chars: list[str] = []
    while value:
        value, idx = divmod(value, 36)
        chars.append(_ALPHABET[idx])
    return "".join(reversed(chars))


def generate_device_id(ts: float | None = None) -> DeviceId:
    """Return ``snapi-<ms since epoch, base36>-<8 random base36 chars>``."""

    if ts is None:
        ts = time.time()
    stamp = _base36(int(ts * 1000))
    rand = "".join(secrets.choice(_ALPHABET) for _ in range(8))
    return DeviceId(f"snapi-{stamp}-{rand}")


class DeviceIdentityProvider:
    def __init__(self, store: CredentialStore, *, key: str = DEVICE_ID_KEY) -> None:
        self._store = store
        self._key = key

    async def get_device_id(self) -> DeviceId:
        # Two first-launch calls racing here may both generate; the store is
        # last-write-wins so later calls converge on whichever landed last.
        try:
            existing = await self._store.get(self._key)
            if existing:
                return DeviceId(existing)
            device_id = generate_device_id()
            await self._store.set(self._key, device_id)
            logger.info("generated device id %s", device_id)
            return device_id
        except Exception as exc:
            logger.debug("device id store unavailable, using ephemeral id: %s", exc)
            return generate_device_id()
