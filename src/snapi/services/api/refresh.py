"""Single-flight access token refresh.

Only one refresh request is ever on the wire: concurrent callers await the
same task. Once an attempt completes, further calls inside the cool-down
window return ``False`` straight away so a burst of 401s cannot hammer the
refresh endpoint.

The shared attempt is an asyncio task; the coordinator needs the asyncio
event loop.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Sequence

from snapi.config.const import REFRESH_COOLDOWN
from snapi.services.session.tokens import TokenStore

__all__ = [
    "ACCESS_TOKEN_FIELDS",
    "REFRESH_TOKEN_FIELDS",
    "RefreshCoordinator",
    "pick_token",
]

logger = logging.getLogger(__name__)

# Tried in order; dotted names descend into nested objects.
ACCESS_TOKEN_FIELDS: tuple[str, ...] = ("accessToken", "access_token", "token", "access", "session.accessToken")
REFRESH_TOKEN_FIELDS: tuple[str, ...] = ("refreshToken", "refresh_token", "refresh", "session.refreshToken")

Exchange = Callable[[str], Awaitable[Any]]


def _lookup(payload: Any, dotted: str) -> Any:
    node = payload
    for part in dotted.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def pick_token(payload: Any, candidates: Sequence[str]) -> str:
    """Return the first non-empty string found under ``candidates``, else ``""``."""
    for name in candidates:
        value = _lookup(payload, name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class RefreshCoordinator:
    def __init__(
        self,
        tokens: TokenStore,
        exchange: Exchange,
        *,
        cooldown: float = REFRESH_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        ``exchange`` posts the refresh token to the backend and returns the
        parsed response body (raising on transport or HTTP failure).
        """
        self._tokens = tokens
        self._exchange = exchange
        self._cooldown = cooldown
        self._clock = clock
        self._inflight: asyncio.Task[bool] | None = None
        self._last_attempt_at: float | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def refresh_once(self) -> bool:
        task = self._inflight
        if task is None:
            if self._last_attempt_at is not None and self._clock() - self._last_attempt_at < self._cooldown:
                logger.debug("refresh skipped: inside cool-down window")
                return False
            task = asyncio.ensure_future(self._run())
            task.add_done_callback(self._settled)
            self._inflight = task
        # shield: a cancelled caller must not cancel the refresh others are waiting on
        return await asyncio.shield(task)

    def _settled(self, task: asyncio.Task[bool]) -> None:
        self._last_attempt_at = self._clock()
        if self._inflight is task:
            self._inflight = None

    async def _run(self) -> bool:
        refresh = await self._tokens.get_refresh_token()
        if not refresh:
            logger.info("refresh skipped: no refresh token")
            return False
        try:
            payload = await self._exchange(refresh)
        except Exception as exc:
            logger.info("refresh failed: %s", exc)
            return False

        if isinstance(payload, Mapping) and payload.get("ok") is False:
            logger.info("refresh rejected by backend (ok: false)")
            return False

        access = pick_token(payload, ACCESS_TOKEN_FIELDS)
        if not access:
            logger.info("refresh response is missing an access token")
            return False
        rotated = pick_token(payload, REFRESH_TOKEN_FIELDS)
        await self._tokens.set_tokens(access, rotated or refresh)
        logger.info("refresh succeeded rotated_refresh=%s", bool(rotated))
        return True
