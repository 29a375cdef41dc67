from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

import httpx

from membership_matrix.directory.errors import DirectoryAPIError, DirectoryErrorCategory


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


def describe_exception(error: Exception) -> ErrorDescriptor:
    """Summarise ``error`` for a user facing notification."""
    descriptor = ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
    )

    directory_error = _locate_directory_error(error)
    if directory_error is not None:
        descriptor.headline = _directory_headline(directory_error)
        descriptor.detail = (
            f"{directory_error.code}: {directory_error}"
            if directory_error.code
            else str(directory_error)
        )
        descriptor.suggestion = directory_error.recovery_suggestion
        descriptor.transient = directory_error.is_retriable
        if directory_error.is_retriable:
            descriptor.severity = ErrorSeverity.WARNING
        return descriptor

    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
        descriptor.headline = "The directory service did not respond in time."
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Retry the change after verifying connectivity."
    return descriptor


def _locate_directory_error(error: BaseException) -> DirectoryAPIError | None:
    current: BaseException | None = error
    visited: set[int] = set()
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, DirectoryAPIError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _directory_headline(error: DirectoryAPIError) -> str:
    match error.category:
        case DirectoryErrorCategory.AUTHENTICATION:
            return "You need to log in to change group memberships."
        case DirectoryErrorCategory.PERMISSION:
            return "You are not allowed to change this group's members."
        case DirectoryErrorCategory.NOT_FOUND:
            return "The user or group could not be found."
        case DirectoryErrorCategory.CONFLICT:
            return "The membership change conflicts with existing data."
        case DirectoryErrorCategory.VALIDATION:
            return "The directory rejected the membership change."
        case DirectoryErrorCategory.NETWORK:
            return "Network issue contacting the directory service."
        case DirectoryErrorCategory.SERVER:
            return "The directory service failed to process the request."
        case _:
            return "Directory request failed."


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
