from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DirectoryErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    NETWORK = "network"
    SERVER = "server"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class DirectoryAPIError(Exception):
    message: str
    category: DirectoryErrorCategory = DirectoryErrorCategory.UNKNOWN
    status_code: int | None = None
    code: str | None = None
    inner_error: Exception | None = None
    request_method: str | None = None
    request_url: str | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        match self.category:
            case DirectoryErrorCategory.AUTHENTICATION:
                return "Your session has expired. Log in again and retry."
            case DirectoryErrorCategory.PERMISSION:
                return "Ask a site manager to grant you permission to manage group members."
            case DirectoryErrorCategory.NOT_FOUND:
                return "The user or group no longer exists. Refresh the listing."
            case DirectoryErrorCategory.CONFLICT:
                return "The membership changed meanwhile. Refresh and verify the latest state."
            case DirectoryErrorCategory.VALIDATION:
                return "The directory rejected the request. Review the selection and try again."
            case DirectoryErrorCategory.NETWORK:
                return "Check your network connection and try again."
            case DirectoryErrorCategory.SERVER:
                return "The directory service reported an internal error. Try again shortly."
            case _:
                return None

    @property
    def is_retriable(self) -> bool:
        if self.category in {DirectoryErrorCategory.NETWORK, DirectoryErrorCategory.SERVER}:
            return True
        if self.status_code and 500 <= self.status_code <= 599:
            return True
        return False


class AuthenticationError(DirectoryAPIError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message=message,
            category=DirectoryErrorCategory.AUTHENTICATION,
            status_code=401,
        )


class AuthorizationError(DirectoryAPIError):
    def __init__(self, message: str = "Insufficient privileges") -> None:
        super().__init__(
            message=message,
            category=DirectoryErrorCategory.PERMISSION,
            status_code=403,
        )


class NotFoundError(DirectoryAPIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(
            message=message,
            category=DirectoryErrorCategory.NOT_FOUND,
            status_code=404,
        )


__all__ = [
    "DirectoryAPIError",
    "DirectoryErrorCategory",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
]
