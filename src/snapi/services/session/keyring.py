from __future__ import annotations

from typing import Protocol, runtime_checkable

from anyio import to_thread

from snapi.config.const import KEYRING_SERVICE


class CredentialStoreError(RuntimeError):
    """Raised when the secure credential store cannot be read or written."""


@runtime_checkable
class CredentialStore(Protocol):
    """Async key-value store that survives process restarts."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


def _require_keyring():
    try:
        import keyring  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise CredentialStoreError("system keyring is unavailable") from exc
    return keyring


class KeyringCredentialStore:
    """:class:`CredentialStore` backed by the OS keyring.

    ``keyring`` is blocking, so every call is pushed to a worker thread.
    """

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self.service = service

    def _get(self, key: str) -> str | None:
        keyring = _require_keyring()
        try:
            value = keyring.get_password(self.service, key)
        except Exception as exc:
            raise CredentialStoreError(f"failed to load {key!r} from keyring") from exc
        return value or None

    def _set(self, key: str, value: str) -> None:
        keyring = _require_keyring()
        try:
            keyring.set_password(self.service, key, value)
        except Exception as exc:
            raise CredentialStoreError(f"failed to write {key!r} to keyring") from exc

    def _delete(self, key: str) -> None:
        keyring = _require_keyring()
        try:
            keyring.delete_password(self.service, key)
        except keyring.errors.PasswordDeleteError:  # type: ignore[attr-defined]
            return
        except Exception as exc:  # pragma: no cover
            raise CredentialStoreError(f"failed to delete {key!r} from keyring") from exc

    async def get(self, key: str) -> str | None:
        return await to_thread.run_sync(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await to_thread.run_sync(self._set, key, value)

    async def delete(self, key: str) -> None:
        await to_thread.run_sync(self._delete, key)


__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "KeyringCredentialStore",
]
