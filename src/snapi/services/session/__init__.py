"""Device identity, credential storage and session state."""
from .device import DeviceId, DeviceIdentityProvider, generate_device_id
from .keyring import CredentialStore, CredentialStoreError, KeyringCredentialStore
from .tokens import SessionState, TokenStore

__all__ = [
    "CredentialStore",
    "CredentialStoreError",
    "DeviceId",
    "DeviceIdentityProvider",
    "KeyringCredentialStore",
    "SessionState",
    "TokenStore",
    "generate_device_id",
]
