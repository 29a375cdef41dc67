from __future__ import annotations

from pydantic import Field

from .common import DirectoryBaseModel
from .group import DirectoryGroup


class ColumnOption(DirectoryBaseModel):
    """One editable column of the matrix.

    ``value`` is the group id, ``label`` its title (or the id when the group
    has no title). Pinned groups are supplied in this shape, usually without
    roles.
    """

    value: str = Field(min_length=1)
    label: str
    roles: list[str] = Field(default_factory=list)

    @classmethod
    def from_group(cls, group: DirectoryGroup) -> "ColumnOption":
        return cls(value=group.id, label=group.label, roles=list(group.roles))
