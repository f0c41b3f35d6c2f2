"""Session-aware HTTP client for the SNAPI backend.

``ApiClient.request`` is the single entry point:

* prefixes the configured base URL (never the marketing host),
* forces the device id / app key headers and attaches ``Authorization:
  Bearer`` for ``/mobile/*`` and ``/app/api/*``,
* fails fast with ``MISSING_APP_KEY`` for ``/app/api/*`` without an app key,
* bounds every attempt with a timeout,
* debounces and de-dupes block/allow toggles,
* refreshes the session once and retries once on 401,
* raises :class:`ApiError` for every failure, never a raw transport error.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import anyio
import httpx

from snapi.config import const
from snapi.services.logging import mask_secret
from snapi.services.session.device import DeviceIdentityProvider
from snapi.services.session.keyring import CredentialStore, KeyringCredentialStore
from snapi.services.session.tokens import SessionState, TokenStore
from snapi.services.settings import ClientSettings

from .dedupe import MutationDeduplicator
from .errors import NETWORK_MESSAGE, TIMEOUT_MESSAGE, ApiError, ErrorCode
from .refresh import RefreshCoordinator
from .request_builder import BuiltRequest, HeadersInit, RequestBuilder, headers_to_dict, is_authed_path

__all__ = ["ApiClient", "read_body"]

logger = logging.getLogger(__name__)


def _preview(text: str, limit: int = 1200) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…"


def read_body(response: httpx.Response) -> Any:
    """Parse a response without ever raising: ``None`` for empty/unparseable JSON."""
    if response.status_code == 204 or not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type.lower():
        try:
            return response.json()
        except ValueError:
            return None
    try:
        return response.text
    except Exception:  # pragma: no cover - undecodable payloads
        return None


def _encode_body(body: Any) -> bytes | str | None:
    if body is None:
        return None
    if isinstance(body, (bytes, str)):
        return body
    return json.dumps(body, ensure_ascii=False)


def _error_message(data: Any, status: int) -> str:
    if isinstance(data, dict):
        for field in ("error", "message"):
            value = data.get(field)
            if value:
                return str(value)
    return f"Request failed ({status})"


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return True
    text = str(exc).lower()
    return "timeout" in text or "timed out" in text or "aborted" in text


class ApiClient:
    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        store: CredentialStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or ClientSettings.load()
        self.store: CredentialStore = store or KeyringCredentialStore(self.settings.keyring_service)
        self.tokens = TokenStore(self.store)
        self.devices = DeviceIdentityProvider(self.store)
        self.builder = RequestBuilder(base_url=self.settings.base_url, app_key=self.settings.app_key)
        self.refresher = RefreshCoordinator(
            self.tokens,
            self._exchange_refresh_token,
            cooldown=self.settings.refresh_cooldown,
        )
        self.mutations = MutationDeduplicator(window=self.settings.mutation_debounce)
        self._http = httpx.AsyncClient(transport=transport, follow_redirects=True)
        logger.debug(
            "api client base_url=%s app_key=%s",
            self.builder.effective_base_url,
            mask_secret(self.settings.app_key),
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---------- session lifecycle --------------------------------------------
    async def hydrate(self) -> SessionState:
        return await self.tokens.hydrate()

    def get_session(self) -> SessionState:
        return self.tokens.get_session()

    async def set_tokens(self, access_token: str, refresh_token: str) -> None:
        await self.tokens.set_tokens(access_token, refresh_token)

    async def clear_tokens(self) -> None:
        await self.tokens.clear_tokens()

    async def refresh_session(self) -> bool:
        return await self.refresher.refresh_once()

    async def get_device_id(self) -> str:
        return await self.devices.get_device_id()

    # ---------- requests -----------------------------------------------------
    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: HeadersInit = None,
        body: Any = None,
        timeout: float | None = None,
        quiet: bool = False,
        authenticate: bool = True,
    ) -> Any:
        """
        Send one request and return the parsed body.

        ``body`` may be a ``dict``/``list`` (sent as JSON) or pre-encoded
        ``str``/``bytes``. ``authenticate=False`` suppresses the bearer token.
        Raises :class:`ApiError`.
        """
        url = self.builder.url_for(path)
        self.builder.check_preconditions(path)

        # materialised once: the retry reuses it and the caller may pass a one-shot iterable
        caller_headers = headers_to_dict(headers)
        device_id = await self.devices.get_device_id()
        content = _encode_body(body)
        attempt_timeout = float(timeout if timeout is not None else self.settings.timeout)
        wants_bearer = authenticate and is_authed_path(path)

        async def prepare() -> BuiltRequest:
            access = await self.tokens.get_access_token() if wants_bearer else None
            return self.builder.build(
                path,
                method=method,
                headers=caller_headers,
                device_id=device_id,
                has_body=body is not None,
                access_token=access,
            )

        built = await prepare()

        async def send() -> Any:
            try:
                return await self._attempt(path, built, content, attempt_timeout, quiet)
            except ApiError as exc:
                if not (authenticate and exc.status == 401 and self._retry_eligible(path)):
                    raise
                if not await self.refresher.refresh_once():
                    raise
            # rebuilt so the retry carries the token written by the refresh
            retry = await prepare()
            logger.info("retrying %s %s after session refresh", retry.method, path)
            return await self._attempt(path, retry, content, attempt_timeout, quiet)

        try:
            route = self.mutations.match(built.method, path)
            if route is not None:
                return await self.mutations.run(route, body, send)
            return await send()
        except ApiError:
            raise
        except Exception as exc:
            raise self._transport_error(exc, path, url) from exc

    @staticmethod
    def _retry_eligible(path: str) -> bool:
        return is_authed_path(path) and path.split("?", 1)[0] != const.REFRESH_PATH

    async def _attempt(
        self,
        path: str,
        built: BuiltRequest,
        content: bytes | str | None,
        timeout: float,
        quiet: bool,
    ) -> Any:
        if not quiet:
            logger.info("-> %s %s", built.method, built.url)
        with anyio.fail_after(timeout):
            response = await self._http.request(
                built.method,
                built.url,
                headers=built.headers,
                content=content,
                timeout=timeout,
            )
        if not quiet:
            logger.info("<- %s %s %s", response.status_code, "OK" if response.is_success else "ERR", built.url)

        data = read_body(response)
        app_failure = isinstance(data, dict) and data.get("ok") is False
        if response.is_success and not app_failure:
            return data

        if not quiet and isinstance(data, str) and data:
            logger.info("error body = %s", _preview(data))
        error_code = data.get("code") if isinstance(data, dict) else None
        raise ApiError(
            _error_message(data, response.status_code),
            status=response.status_code,
            body=data,
            error_code=error_code if isinstance(error_code, str) else None,
            path=path,
            url=built.url,
            base_url=self.settings.base_url,
        )

    def _transport_error(self, exc: BaseException, path: str, url: str) -> ApiError:
        timed_out = _is_timeout(exc)
        logger.warning("%s %s: %s", "timeout" if timed_out else "network error", path, exc)
        return ApiError(
            TIMEOUT_MESSAGE if timed_out else NETWORK_MESSAGE,
            code=ErrorCode.TIMEOUT if timed_out else ErrorCode.NETWORK_ERROR,
            path=path,
            url=url,
            base_url=self.settings.base_url,
        )

    async def _exchange_refresh_token(self, refresh_token: str) -> Any:
        return await self.request(
            const.REFRESH_PATH,
            method="POST",
            headers={"Content-Type": "application/json"},
            body={"refreshToken": refresh_token},
            timeout=self.settings.refresh_timeout,
            quiet=True,
            authenticate=False,
        )
