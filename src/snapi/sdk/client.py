"""Process-wide facade over a single :class:`ApiClient`.

Application code calls :func:`configure` once at startup (or relies on the
lazily built default) and then uses the module functions below.
"""

from __future__ import annotations

from typing import Any

from snapi.services.api.client import ApiClient
from snapi.services.api.request_builder import HeadersInit
from snapi.services.session.keyring import CredentialStore
from snapi.services.session.tokens import SessionState
from snapi.services.settings import ClientSettings

_client: ApiClient | None = None


def configure(settings: ClientSettings | None = None, *, store: CredentialStore | None = None, **kwargs: Any) -> ApiClient:
    """Install (and return) the client used by the module-level functions."""

    global _client
    _client = ApiClient(settings, store=store, **kwargs)
    return _client


def get_client() -> ApiClient:
    global _client
    if _client is None:
        _client = ApiClient()
    return _client


async def reset() -> None:
    """Close and forget the current client."""

    global _client
    if _client is not None:
        await _client.aclose()
    _client = None


async def request(
    path: str,
    *,
    method: str = "GET",
    headers: HeadersInit = None,
    body: Any = None,
    timeout: float | None = None,
    quiet: bool = False,
) -> Any:
    return await get_client().request(path, method=method, headers=headers, body=body, timeout=timeout, quiet=quiet)


async def hydrate() -> SessionState:
    return await get_client().hydrate()


def get_session() -> SessionState:
    return get_client().get_session()


async def set_tokens(access_token: str, refresh_token: str) -> None:
    await get_client().set_tokens(access_token, refresh_token)


async def clear_tokens() -> None:
    await get_client().clear_tokens()


async def refresh_session() -> bool:
    return await get_client().refresh_session()


__all__ = [
    "configure",
    "get_client",
    "reset",
    "request",
    "hydrate",
    "get_session",
    "set_tokens",
    "clear_tokens",
    "refresh_session",
]
