"""Directory service REST client."""

from .client import (
    DirectoryAsyncClient,
    DirectoryClient,
    DirectoryClientConfig,
    TokenProvider,
)
from .errors import (
    AuthenticationError,
    AuthorizationError,
    DirectoryAPIError,
    DirectoryErrorCategory,
    NotFoundError,
)

__all__ = [
    "DirectoryAPIError",
    "DirectoryErrorCategory",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "DirectoryAsyncClient",
    "DirectoryClient",
    "DirectoryClientConfig",
    "TokenProvider",
]
