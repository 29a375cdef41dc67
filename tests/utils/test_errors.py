from __future__ import annotations

import httpx

from membership_matrix.directory import (
    AuthorizationError,
    DirectoryAPIError,
    DirectoryErrorCategory,
)
from membership_matrix.utils.errors import ErrorSeverity, describe_exception


def test_permission_errors_get_a_permission_headline() -> None:
    descriptor = describe_exception(AuthorizationError("Not allowed to change members"))

    assert descriptor.headline == "You are not allowed to change this group's members."
    assert descriptor.detail == "Not allowed to change members"
    assert descriptor.severity is ErrorSeverity.ERROR
    assert descriptor.transient is False
    assert descriptor.suggestion is not None


def test_wrapped_directory_errors_are_found() -> None:
    cause = DirectoryAPIError(
        "upstream down",
        category=DirectoryErrorCategory.SERVER,
        status_code=503,
        code="ServiceUnavailable",
    )
    try:
        try:
            raise cause
        except DirectoryAPIError as exc:
            raise RuntimeError("write failed") from exc
    except RuntimeError as wrapped:
        descriptor = describe_exception(wrapped)

    assert descriptor.detail == "ServiceUnavailable: upstream down"
    assert descriptor.transient is True
    assert descriptor.severity is ErrorSeverity.WARNING


def test_timeouts_are_transient() -> None:
    descriptor = describe_exception(httpx.ReadTimeout("slow"))

    assert descriptor.transient is True
    assert descriptor.severity is ErrorSeverity.WARNING


def test_unknown_errors_keep_type_name() -> None:
    descriptor = describe_exception(ValueError("bad"))

    assert descriptor.headline == "Operation failed."
    assert descriptor.detail == "ValueError: bad"
