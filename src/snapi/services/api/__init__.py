"""Session-aware HTTP client for the SNAPI backend."""
from .client import ApiClient, read_body
from .dedupe import ALLOW_ROUTE, BLOCK_ROUTE, MutationDeduplicator, MutationKey, ToggleRoute
from .errors import ApiError, ErrorCode
from .refresh import RefreshCoordinator, pick_token
from .request_builder import RequestBuilder, headers_to_dict, join_url, resolve_base_url

__all__ = [
    "ALLOW_ROUTE",
    "BLOCK_ROUTE",
    "ApiClient",
    "ApiError",
    "ErrorCode",
    "MutationDeduplicator",
    "MutationKey",
    "RefreshCoordinator",
    "RequestBuilder",
    "ToggleRoute",
    "headers_to_dict",
    "join_url",
    "pick_token",
    "read_body",
    "resolve_base_url",
]
