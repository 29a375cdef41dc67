from __future__ import annotations

from pydantic import Field

from .common import DirectoryBaseModel, DirectoryResource


class GroupReference(DirectoryResource):
    """A group as listed inside a principal's membership view.

    The directory only guarantees ``id`` here; ``title`` and ``roles`` are
    often missing.
    """

    title: str | None = None
    roles: list[str] = Field(default_factory=list)


class GroupMembership(DirectoryBaseModel):
    items: list[GroupReference] = Field(default_factory=list)
    items_total: int | None = None

    def ids(self) -> list[str]:
        return [item.id for item in self.items]


class Principal(DirectoryResource):
    fullname: str | None = None
    email: str | None = None
    username: str | None = None
    roles: list[str] = Field(default_factory=list)
    groups: GroupMembership = Field(default_factory=GroupMembership)

    def is_member_of(self, group_id: str) -> bool:
        return group_id in self.groups.ids()
