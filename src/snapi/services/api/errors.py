from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = ["ApiError", "ErrorCode", "TIMEOUT_MESSAGE", "NETWORK_MESSAGE"]

TIMEOUT_MESSAGE = "Server not reachable. Please try again."
NETWORK_MESSAGE = "Network error. Check connectivity and try again."


class ErrorCode(str, Enum):
    MISSING_APP_KEY = "MISSING_APP_KEY"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"

    def __str__(self) -> str:  # pragma: no cover - convenience for logging only
        return str(self.value)


class ApiError(RuntimeError):
    """Classified failure of an API call.

    Exactly one of ``code`` (configuration/transport failures) or ``status``
    (HTTP and ``ok: false`` application failures) is set.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        status: int | None = None,
        body: Any | None = None,
        error_code: str | None = None,
        path: str = "",
        url: str = "",
        base_url: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.body = body
        self.error_code = error_code
        self.path = path
        self.url = url
        self.base_url = base_url

    def as_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code.value if self.code else None,
            "status": self.status,
            "body": self.body,
            "error_code": self.error_code,
            "path": self.path,
            "url": self.url,
            "base_url": self.base_url,
        }

    def __repr__(self) -> str:
        return f"ApiError({self.message!r}, code={self.code}, status={self.status}, path={self.path!r})"
