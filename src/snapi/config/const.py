# src/snapi/config/const.py
from __future__ import annotations

# Hard defaults (changed by developers in code/build, not at runtime)
DEFAULT_PROD_URL: str = "https://api.snapipro.com"
MARKETING_HOST: str = "snapipro.com"

# Route prefixes that carry the bearer token
MOBILE_PREFIX: str = "/mobile/"
APP_API_PREFIX: str = "/app/api/"
AUTHED_PREFIXES: tuple[str, ...] = (MOBILE_PREFIX, APP_API_PREFIX)
REFRESH_PATH: str = "/mobile/auth/refresh"

# Wire headers
DEVICE_ID_HEADERS: tuple[str, ...] = ("x-snapi-device-id", "x-snapi-device")
APP_KEY_HEADER: str = "x-snapi-app-key"

# Secure store keys
DEVICE_ID_KEY: str = "snapi.device.id.v1"
ACCESS_KEY: str = "snapi_access_token"
REFRESH_KEY: str = "snapi_refresh_token"
ALLOWLIST_LAST_SYNC_OK_KEY: str = "snapi_allowlist_last_sync_ok_v1"
ALLOWLIST_LAST_SYNC_ATTEMPT_KEY: str = "snapi_allowlist_last_sync_attempt_v1"

KEYRING_SERVICE: str = "snapi/api.snapipro.com"

# Timing (seconds)
DEFAULT_TIMEOUT: float = 12.0
REFRESH_TIMEOUT: float = 12.0
REFRESH_COOLDOWN: float = 1.5
MUTATION_DEBOUNCE: float = 0.8
