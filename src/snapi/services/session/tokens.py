"""Access/refresh token persistence and the in-memory session snapshot.

:class:`TokenStore` is the only writer of :class:`SessionState`. Every
mutation replaces the snapshot with a new frozen value, so readers of
:meth:`TokenStore.get_session` never observe a half-applied update.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any
import logging

from snapi.config.const import ACCESS_KEY, REFRESH_KEY
from snapi.services.logging import mask_secret

from .keyring import CredentialStore

__all__ = ["SessionState", "TokenStore"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionState:
    hydrated: bool = False
    is_authed: bool = False
    access_token: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


_UNHYDRATED = SessionState()
_SIGNED_OUT = SessionState(hydrated=True, is_authed=False)


class TokenStore:
    def __init__(
        self,
        store: CredentialStore,
        *,
        access_key: str = ACCESS_KEY,
        refresh_key: str = REFRESH_KEY,
    ) -> None:
        self._store = store
        self._access_key = access_key
        self._refresh_key = refresh_key
        self._session = _UNHYDRATED
        self._refresh: str | None = None

    def get_session(self) -> SessionState:
        return self._session

    async def hydrate(self) -> SessionState:
        """Load tokens from the store; call once at startup before routing on auth."""
        try:
            access = await self._store.get(self._access_key)
            refresh = await self._store.get(self._refresh_key)
        except Exception as exc:
            logger.warning("session hydrate failed, treating as signed out: %s", exc)
            self._session = _SIGNED_OUT
            self._refresh = None
            return self._session

        self._session = SessionState(
            hydrated=True,
            is_authed=bool(access) and bool(refresh),
            access_token=access or None,
        )
        self._refresh = refresh or None
        return self._session

    async def set_tokens(self, access_token: str, refresh_token: str) -> None:
        access = str(access_token or "")
        refresh = str(refresh_token or "")
        try:
            await self._store.set(self._access_key, access)
            await self._store.set(self._refresh_key, refresh)
        except Exception as exc:
            # the in-memory session still carries the tokens for this process
            logger.warning("failed to persist tokens: %s", exc)
        self._session = SessionState(hydrated=True, is_authed=bool(access and refresh), access_token=access or None)
        self._refresh = refresh or None
        logger.debug("tokens updated access=%s", mask_secret(access))

    async def clear_tokens(self) -> None:
        try:
            await self._store.delete(self._access_key)
            await self._store.delete(self._refresh_key)
        except Exception as exc:
            logger.debug("token delete failed: %s", exc)
        self._session = _SIGNED_OUT
        self._refresh = None

    async def get_access_token(self) -> str | None:
        """Token for the next request; the snapshot wins once the session is hydrated."""
        if self._session.hydrated:
            return self._session.access_token
        try:
            token = await self._store.get(self._access_key)
        except Exception as exc:
            logger.debug("access token read failed: %s", exc)
            return None
        return token or None

    async def get_refresh_token(self) -> str | None:
        if self._session.hydrated:
            return self._refresh
        try:
            token = await self._store.get(self._refresh_key)
        except Exception as exc:
            logger.debug("refresh token read failed: %s", exc)
            return None
        return token or None
