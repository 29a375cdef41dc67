from __future__ import annotations

from typing import Iterable, Sequence

from membership_matrix.data import (
    AUTHENTICATED_USERS,
    ColumnOption,
    DirectoryGroup,
    GroupReference,
    Principal,
)
from membership_matrix.matrix.axes import columns_visible, query_is_specific


def build_columns(
    groups: Sequence[DirectoryGroup],
    *,
    group_query: str = "",
    many_groups: bool = False,
    pinned_groups: Sequence[ColumnOption] = (),
    include_joined_groups: bool = False,
    principals: Iterable[Principal] = (),
) -> list[ColumnOption]:
    """Assemble the matrix columns.

    The steps run in a fixed order: seed from ``groups`` (only when the group
    query is specific enough or the directory is small), add the groups the
    listed principals already joined, map to columns, put pinned groups in
    front, drop duplicates keeping the first, drop the authenticated-users
    pseudo-group, sort by upper-cased label and finally copy roles from
    ``groups``.
    """
    if not columns_visible(
        many_groups=many_groups,
        group_query=group_query,
        pinned_groups=pinned_groups,
        include_joined_groups=include_joined_groups,
    ):
        return []

    seed: list[DirectoryGroup | GroupReference] = (
        list(groups) if not many_groups or query_is_specific(group_query) else []
    )
    if include_joined_groups:
        for principal in principals:
            seed.extend(principal.groups.items)

    mapped = [ColumnOption(value=group.id, label=group.title or group.id) for group in seed]
    candidates = [*pinned_groups, *mapped]

    seen: set[str] = set()
    unique: list[ColumnOption] = []
    for column in candidates:
        if column.value in seen:
            continue
        seen.add(column.value)
        unique.append(column)

    columns = [column for column in unique if column.value != AUTHENTICATED_USERS]
    columns.sort(key=lambda column: column.label.upper())

    roles: dict[str, list[str]] = {}
    for group in groups:
        roles.setdefault(group.id, list(group.roles))
    return [
        column.model_copy(update={"roles": list(roles.get(column.value, []))})
        for column in columns
    ]


__all__ = ["build_columns"]
