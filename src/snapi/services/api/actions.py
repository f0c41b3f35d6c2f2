"""Typed wrappers for the call-screening endpoints."""
from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from .client import ApiClient

__all__ = ["RecentCall", "fetch_recent", "form_encode", "set_allowed", "set_blocked"]

_FORM = {"Content-Type": "application/x-www-form-urlencoded;charset=UTF-8"}


class RecentCall(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ts: str | float | None = None
    callSid: str = ""
    from_: str = Field("", alias="from")
    to: str | None = None
    action: str | None = None
    status: str | None = None
    recordingUrl: str | None = None
    transcript: str | None = None
    isBlocked: bool | None = None
    blocked: bool | None = None
    blockStatus: str | None = None

    @property
    def is_blocked(self) -> bool:
        return bool(self.isBlocked or self.blocked or (self.blockStatus or "").lower() == "blocked")


def form_encode(values: dict[str, Any]) -> str:
    def _value(v: Any) -> str:
        return ("true" if v else "false") if isinstance(v, bool) else str(v)

    return urlencode([(k, _value(v)) for k, v in values.items() if v is not None])


async def set_blocked(client: ApiClient, from_number: str, blocked: bool) -> Any:
    return await client.request(
        "/app/api/block",
        method="POST",
        headers=_FORM,
        body=form_encode({"from": from_number, "blocked": blocked}),
    )


async def set_allowed(client: ApiClient, from_number: str, allowed: bool, *, timeout: float | None = None) -> Any:
    return await client.request(
        "/app/api/allow",
        method="POST",
        headers=_FORM,
        body=form_encode({"from": from_number, "allowed": allowed}),
        timeout=timeout,
    )


async def fetch_recent(client: ApiClient, limit: int = 50) -> list[RecentCall]:
    data = await client.request(f"/admin/api/recent?{urlencode({'limit': limit})}")
    # the backend answers either {ok, items} or a bare list
    items = data.get("items") if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []
    return [RecentCall.model_validate(item) for item in items if isinstance(item, dict)]
