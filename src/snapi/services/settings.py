from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping
import logging
import os

import yaml

from snapi.config import const

__all__ = ["ClientSettings", "load_settings"]

logger = logging.getLogger(__name__)

# first non-empty value wins so builds with older variable names keep working
_BASE_URL_ENV = ("SNAPI_API_BASE_URL", "SNAPI_BASE_URL")
_APP_KEY_ENV = ("SNAPI_APP_KEY", "SNAPI_MOBILE_KEY", "SNAPI_APP_KEY_FALLBACK")


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


def _first_env(environ: Mapping[str, str], names: tuple[str, ...]) -> str:
    for name in names:
        value = _clean(environ.get(name))
        if value:
            return value
    return ""


def _as_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


@dataclass(slots=True, frozen=True)
class ClientSettings:
    """Runtime configuration for :class:`snapi.services.api.client.ApiClient`."""

    base_url: str = const.DEFAULT_PROD_URL
    app_key: str = ""
    timeout: float = const.DEFAULT_TIMEOUT
    refresh_timeout: float = const.REFRESH_TIMEOUT
    refresh_cooldown: float = const.REFRESH_COOLDOWN
    mutation_debounce: float = const.MUTATION_DEBOUNCE
    keyring_service: str = const.KEYRING_SERVICE
    log_level: str = "INFO"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ClientSettings":
        defaults = cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("ignoring unknown settings keys: %s", ", ".join(unknown))
        return cls(
            base_url=_clean(data.get("base_url")) or defaults.base_url,
            app_key=_clean(data.get("app_key")),
            timeout=_as_float(data.get("timeout"), defaults.timeout),
            refresh_timeout=_as_float(data.get("refresh_timeout"), defaults.refresh_timeout),
            refresh_cooldown=_as_float(data.get("refresh_cooldown"), defaults.refresh_cooldown),
            mutation_debounce=_as_float(data.get("mutation_debounce"), defaults.mutation_debounce),
            keyring_service=_clean(data.get("keyring_service")) or defaults.keyring_service,
            log_level=(_clean(data.get("log_level")) or defaults.log_level).upper(),
        )

    def with_env(self, environ: Mapping[str, str] | None = None) -> "ClientSettings":
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        base_url = _first_env(env, _BASE_URL_ENV)
        if base_url:
            overrides["base_url"] = base_url
        app_key = _first_env(env, _APP_KEY_ENV)
        if app_key:
            overrides["app_key"] = app_key
        if _clean(env.get("SNAPI_TIMEOUT")):
            overrides["timeout"] = _as_float(env.get("SNAPI_TIMEOUT"), self.timeout)
        if _clean(env.get("SNAPI_LOG_LEVEL")):
            overrides["log_level"] = _clean(env.get("SNAPI_LOG_LEVEL")).upper()
        return replace(self, **overrides) if overrides else self

    @classmethod
    def load(cls, path: str | Path | None = None, *, environ: Mapping[str, str] | None = None) -> "ClientSettings":
        """
        Build settings from defaults, an optional YAML file and the environment.

        The file is taken from ``path`` or ``$SNAPI_CONFIG``; a missing file is
        not an error. Environment variables always win over the file.
        """
        env = os.environ if environ is None else environ
        config_path = path or _clean(env.get("SNAPI_CONFIG")) or None
        data: dict[str, Any] = {}
        if config_path:
            p = Path(config_path).expanduser()
            if p.exists():
                loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
                if not isinstance(loaded, dict):
                    raise ValueError(f"{p}: expected a mapping at top level")
                data = loaded
            else:
                logger.debug("settings file %s not found, using defaults", p)
        return cls.from_mapping(data).with_env(env)


def load_settings(path: str | Path | None = None) -> ClientSettings:
    return ClientSettings.load(path)
