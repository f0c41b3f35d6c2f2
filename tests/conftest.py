from __future__ import annotations

from typing import Callable

import httpx
import pytest

from snapi.services.api.client import ApiClient
from snapi.services.session.keyring import CredentialStoreError
from snapi.services.settings import ClientSettings

APP_KEY = "app-key-123"


class MemoryStore:
    """In-memory stand-in for the OS keyring with switchable failures."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.fail_get = False
        self.fail_set = False
        self.fail_delete = False
        self.writes: list[tuple[str, str]] = []

    async def get(self, key: str) -> str | None:
        if self.fail_get:
            raise CredentialStoreError(f"get {key} failed")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_set:
            raise CredentialStoreError(f"set {key} failed")
        self.writes.append((key, value))
        self.data[key] = value

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise CredentialStoreError(f"delete {key} failed")
        self.data.pop(key, None)


@pytest.fixture
def anyio_backend():
    # refresh and mutation sharing are built on asyncio tasks
    return "asyncio"


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def settings() -> ClientSettings:
    return ClientSettings(base_url="https://api.snapipro.com", app_key=APP_KEY)


@pytest.fixture()
def make_client(store: MemoryStore, settings: ClientSettings) -> Callable[..., ApiClient]:
    def _make(handler, *, settings_override: ClientSettings | None = None) -> ApiClient:
        return ApiClient(
            settings_override or settings,
            store=store,
            transport=httpx.MockTransport(handler),
        )

    return _make
