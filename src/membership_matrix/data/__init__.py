"""Directory data models and payload validation."""

from .models import (
    AUTHENTICATED_USERS,
    ColumnOption,
    DirectoryBaseModel,
    DirectoryGroup,
    DirectoryResource,
    GroupMembership,
    GroupReference,
    Principal,
)
from .validation import DirectoryResponseValidator, ValidationIssue

__all__ = [
    "AUTHENTICATED_USERS",
    "ColumnOption",
    "DirectoryBaseModel",
    "DirectoryGroup",
    "DirectoryResource",
    "GroupMembership",
    "GroupReference",
    "Principal",
    "DirectoryResponseValidator",
    "ValidationIssue",
]
