"""Push a caller-supplied contact list to the backend allowlist.

Numbers are normalised to E.164, de-duplicated and capped per run, then
posted with a small bounded concurrency. Attempt/success timestamps are kept
in the credential store so :meth:`AllowlistSync.sync_if_needed` runs at most
once a day.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import anyio

from snapi.config.const import ALLOWLIST_LAST_SYNC_ATTEMPT_KEY, ALLOWLIST_LAST_SYNC_OK_KEY
from snapi.services.api.actions import set_allowed
from snapi.services.api.client import ApiClient
from snapi.services.api.errors import ApiError
from snapi.services.phone import normalize_to_e164

__all__ = ["AllowlistSync", "SyncIfNeededResult", "SyncResult"]

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60
MAX_PER_RUN = 400
CONCURRENCY = 3
TIMEOUT = 15.0


@dataclass(slots=True)
class SyncResult:
    ok: bool
    count: int = 0
    error: str | None = None


@dataclass(slots=True)
class SyncIfNeededResult:
    did_run: bool
    ok: bool | None = None
    count: int | None = None
    error: str | None = None
    last_min_ago: int | None = None


def _unique_numbers(raw: Iterable[str], limit: int) -> list[str]:
    seen: dict[str, None] = {}
    for item in raw:
        e164 = normalize_to_e164(item)
        if e164:
            seen.setdefault(e164, None)
    return list(seen)[:limit]


class AllowlistSync:
    def __init__(
        self,
        client: ApiClient,
        *,
        max_per_run: int = MAX_PER_RUN,
        concurrency: int = CONCURRENCY,
        timeout: float = TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._max_per_run = max_per_run
        self._concurrency = max(1, concurrency)
        self._timeout = timeout
        self._clock = clock

    async def _read_stamp(self, key: str) -> float:
        try:
            raw = await self._client.store.get(key)
        except Exception as exc:
            logger.debug("allowlist stamp %s unreadable: %s", key, exc)
            return 0.0
        try:
            return float(raw) / 1000 if raw else 0.0
        except ValueError:
            return 0.0

    async def _write_stamp(self, key: str) -> None:
        try:
            await self._client.store.set(key, str(int(self._clock() * 1000)))
        except Exception as exc:
            logger.debug("allowlist stamp %s not written: %s", key, exc)

    async def sync_now(self, numbers: Iterable[str]) -> SyncResult:
        # stamp first so a restart mid-run does not immediately start over
        await self._write_stamp(ALLOWLIST_LAST_SYNC_ATTEMPT_KEY)

        batch = _unique_numbers(numbers, self._max_per_run)
        if not batch:
            return SyncResult(ok=True, count=0)

        ok_count = 0
        first_error = ""
        limiter = anyio.CapacityLimiter(self._concurrency)

        async def _push(number: str) -> None:
            nonlocal ok_count, first_error
            async with limiter:
                try:
                    result = await set_allowed(self._client, number, True, timeout=self._timeout)
                except ApiError as exc:
                    first_error = first_error or exc.message or "sync_failed"
                    return
            # only an explicit ok counts; an empty 2xx is not an acknowledgement
            if not (isinstance(result, dict) and result.get("ok")):
                reason = result.get("error") if isinstance(result, dict) else None
                first_error = first_error or str(reason or "").strip() or "sync_failed"
                return
            ok_count += 1

        async with anyio.create_task_group() as tg:
            for number in batch:
                tg.start_soon(_push, number)

        logger.info("allowlist sync pushed %d/%d numbers", ok_count, len(batch))
        if ok_count > 0:
            await self._write_stamp(ALLOWLIST_LAST_SYNC_OK_KEY)
            return SyncResult(ok=True, count=ok_count)
        return SyncResult(ok=False, count=0, error=first_error or "sync failed")

    async def sync_if_needed(self, numbers: Iterable[str]) -> SyncIfNeededResult:
        ok_at = await self._read_stamp(ALLOWLIST_LAST_SYNC_OK_KEY)
        attempt_at = await self._read_stamp(ALLOWLIST_LAST_SYNC_ATTEMPT_KEY)
        last_any = max(ok_at, attempt_at)
        now = self._clock()
        last_min_ago = round((now - last_any) / 60) if last_any else None

        if last_any and now - last_any <= DAY_SECONDS:
            return SyncIfNeededResult(did_run=False, last_min_ago=last_min_ago)

        result = await self.sync_now(numbers)
        return SyncIfNeededResult(
            did_run=True,
            ok=result.ok,
            count=result.count,
            error=result.error,
            last_min_ago=last_min_ago,
        )
