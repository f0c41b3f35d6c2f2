"""Debounce and in-flight joining for state-toggle mutations (block/allow).

A repeat of the *same* target state for a resource inside the debounce
window is answered locally; an identical request that is still on the wire is
joined instead of re-sent. Reversals (block then unblock) always go through.

Shared sends are asyncio tasks, so this module needs the asyncio event loop.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import parse_qs

from snapi.config.const import MUTATION_DEBOUNCE

__all__ = [
    "BLOCK_ROUTE",
    "ALLOW_ROUTE",
    "MutationDeduplicator",
    "MutationKey",
    "ToggleRoute",
    "parse_toggle_body",
]

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ToggleRoute:
    path: str
    resource_field: str
    state_field: str
    method: str = "POST"


BLOCK_ROUTE = ToggleRoute(path="/app/api/block", resource_field="from", state_field="blocked")
ALLOW_ROUTE = ToggleRoute(path="/app/api/allow", resource_field="from", state_field="allowed")


@dataclass(frozen=True, slots=True)
class MutationKey:
    method: str
    path: str
    resource: str
    target: bool


@dataclass(slots=True)
class _Applied:
    at: float
    state: bool


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return bool(value)


def _body_mapping(body: Any) -> Mapping[str, Any] | None:
    if isinstance(body, Mapping):
        return body
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(body, str) or not body.strip():
        return None
    text = body.strip()
    if text.startswith("{"):
        try:
            parsed = json.loads(text)
        except ValueError:
            return None
        return parsed if isinstance(parsed, Mapping) else None
    form = parse_qs(text, keep_blank_values=True)
    return {k: v[-1] for k, v in form.items()} if form else None


def parse_toggle_body(route: ToggleRoute, body: Any) -> tuple[str, bool] | None:
    """Extract ``(resource, target_state)`` from a JSON or form body, or ``None``."""
    data = _body_mapping(body)
    if data is None:
        return None
    resource = str(data.get(route.resource_field) or "").strip()
    if not resource:
        return None
    return resource, _as_bool(data.get(route.state_field))


class MutationDeduplicator:
    def __init__(
        self,
        routes: tuple[ToggleRoute, ...] = (BLOCK_ROUTE, ALLOW_ROUTE),
        *,
        window: float = MUTATION_DEBOUNCE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._routes = {(r.method, r.path): r for r in routes}
        self._window = window
        self._clock = clock
        self._inflight: dict[MutationKey, asyncio.Task[Any]] = {}
        self._applied: dict[tuple[str, str], _Applied] = {}

    def match(self, method: str, path: str) -> ToggleRoute | None:
        return self._routes.get((method.upper(), path.split("?", 1)[0]))

    def _prune(self, now: float) -> None:
        stale = [k for k, rec in self._applied.items() if now - rec.at >= self._window]
        for k in stale:
            del self._applied[k]

    async def run(
        self,
        route: ToggleRoute,
        body: Any,
        send: Callable[[], Awaitable[Any]],
    ) -> Any:
        parsed = parse_toggle_body(route, body)
        if parsed is None:
            return await send()
        resource, target = parsed

        now = self._clock()
        self._prune(now)
        slot = (route.path, resource)
        last = self._applied.get(slot)
        if last is not None and last.state == target:
            logger.info("mutation debounced %s %s=%s (%.0f ms)", route.path, resource, target, (now - last.at) * 1000)
            return {"ok": True, "debounced": True, route.resource_field: resource, route.state_field: target}

        key = MutationKey(route.method, route.path, resource, target)
        existing = self._inflight.get(key)
        if existing is not None:
            logger.info("mutation joined in-flight %s %s=%s", route.path, resource, target)
            return await asyncio.shield(existing)

        record = _Applied(at=now, state=target)
        self._applied[slot] = record
        task = asyncio.ensure_future(send())
        self._inflight[key] = task

        def _settled(done: asyncio.Task[Any]) -> None:
            if self._inflight.get(key) is done:
                del self._inflight[key]
            # a failed toggle must not suppress an immediate retry
            if (done.cancelled() or done.exception() is not None) and self._applied.get(slot) is record:
                del self._applied[slot]

        task.add_done_callback(_settled)
        return await asyncio.shield(task)
