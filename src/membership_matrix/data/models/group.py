from __future__ import annotations

from typing import Final

from pydantic import Field

from .common import DirectoryResource


AUTHENTICATED_USERS: Final[str] = "AuthenticatedUsers"
"""Pseudo-group every logged-in principal belongs to; never editable."""


class DirectoryGroup(DirectoryResource):
    title: str | None = None
    description: str | None = None
    email: str | None = None
    groupname: str | None = None
    roles: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.title or self.id
