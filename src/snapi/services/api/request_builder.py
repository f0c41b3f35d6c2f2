"""URL and header composition for outgoing requests.

Header precedence, lowest to highest: caller headers, ``Accept`` /
``Content-Type`` defaults, device identity, app key, bearer token. The last
three are forced so a caller can never send a request that is not attributable
to this device.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

import httpx

from snapi.config import const

from .errors import ApiError, ErrorCode

__all__ = [
    "BuiltRequest",
    "HeadersInit",
    "RequestBuilder",
    "headers_to_dict",
    "is_authed_path",
    "join_url",
    "resolve_base_url",
]

HeadersInit = Union[Mapping[str, Any], httpx.Headers, Iterable[tuple[str, Any]], None]

_MARKETING_RE = re.compile(r"(^|//)(www\.)?" + re.escape(const.MARKETING_HOST) + r"(/|$)", re.IGNORECASE)
_API_HOST_RE = re.compile(r"//api\." + re.escape(const.MARKETING_HOST), re.IGNORECASE)


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


def resolve_base_url(base_url: str) -> str:
    """Swap the marketing site for the API host; everything else is returned as is."""
    raw = _clean(base_url)
    if _MARKETING_RE.search(raw) and not _API_HOST_RE.search(raw):
        return const.DEFAULT_PROD_URL
    return raw


def join_url(base: str, path: str) -> str:
    p = _clean(path)
    if p.lower().startswith(("http://", "https://")):
        return p
    b = _clean(base).rstrip("/")
    return f"{b}{p if p.startswith('/') else '/' + p}"


def is_authed_path(path: str) -> bool:
    return path.startswith(const.AUTHED_PREFIXES)


def headers_to_dict(headers: HeadersInit) -> dict[str, str]:
    out: dict[str, str] = {}
    if not headers:
        return out
    if isinstance(headers, httpx.Headers):
        items: Iterable[tuple[Any, Any]] = headers.multi_items()
    elif isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = headers
    for key, value in items:
        out[str(key)] = str(value)
    return out


def _find(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key in headers:
        if key.lower() == lowered:
            return key
    return None


def _force(headers: dict[str, str], name: str, value: str) -> None:
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value


@dataclass(slots=True)
class BuiltRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RequestBuilder:
    base_url: str = const.DEFAULT_PROD_URL
    app_key: str = ""

    @property
    def effective_base_url(self) -> str:
        return resolve_base_url(self.base_url)

    def url_for(self, path: str) -> str:
        return join_url(self.effective_base_url, path)

    def check_preconditions(self, path: str) -> None:
        """Raise ``MISSING_APP_KEY`` for app API routes when no key is configured."""
        if path.startswith(const.APP_API_PREFIX) and not self.app_key:
            raise ApiError(
                "App key missing (SNAPI_APP_KEY).",
                code=ErrorCode.MISSING_APP_KEY,
                path=path,
                url=self.url_for(path),
                base_url=self.base_url,
            )

    def build_headers(
        self,
        headers: HeadersInit,
        *,
        device_id: str,
        has_body: bool,
        access_token: str | None = None,
        path: str = "",
    ) -> dict[str, str]:
        merged = headers_to_dict(headers)

        if _find(merged, "Accept") is None:
            merged["Accept"] = "application/json"

        content_type_key = _find(merged, "Content-Type")
        if content_type_key is None:
            if has_body:
                merged["Content-Type"] = "application/json"
        elif content_type_key != "Content-Type":
            merged["Content-Type"] = merged.pop(content_type_key)

        for name in const.DEVICE_ID_HEADERS:
            _force(merged, name, device_id)

        if self.app_key:
            _force(merged, const.APP_KEY_HEADER, self.app_key)

        if access_token and is_authed_path(path):
            _force(merged, "Authorization", f"Bearer {access_token}")

        return merged

    def build(
        self,
        path: str,
        *,
        method: str | None = None,
        headers: HeadersInit = None,
        device_id: str,
        has_body: bool,
        access_token: str | None = None,
    ) -> BuiltRequest:
        """Compose method, URL and headers; call :meth:`check_preconditions` first."""
        return BuiltRequest(
            method=_clean(method or "GET").upper(),
            url=self.url_for(path),
            headers=self.build_headers(
                headers,
                device_id=device_id,
                has_body=has_body,
                access_token=access_token,
                path=path,
            ),
        )
