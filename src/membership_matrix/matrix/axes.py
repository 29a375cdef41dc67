from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Sized

MIN_QUERY_LENGTH: Final[int] = 2


@dataclass(frozen=True, slots=True)
class AxisVisibility:
    show_rows: bool
    show_columns: bool


def query_is_specific(query: str) -> bool:
    """Large directories are only searched once the query has two characters."""
    return len(query) >= MIN_QUERY_LENGTH


def rows_visible(*, many_users: bool, user_query: str, pinned_groups: Sized) -> bool:
    return (
        not many_users
        or (many_users and query_is_specific(user_query))
        or (many_users and len(pinned_groups) > 0)
    )


def columns_visible(
    *,
    many_groups: bool,
    group_query: str,
    pinned_groups: Sized,
    include_joined_groups: bool,
) -> bool:
    return (
        not many_groups
        or (many_groups and query_is_specific(group_query))
        or len(pinned_groups) > 0
        or include_joined_groups
    )


def resolve_axes(
    *,
    many_users: bool,
    many_groups: bool,
    user_query: str,
    group_query: str,
    pinned_groups: Sized,
    include_joined_groups: bool,
) -> AxisVisibility:
    return AxisVisibility(
        show_rows=rows_visible(
            many_users=many_users,
            user_query=user_query,
            pinned_groups=pinned_groups,
        ),
        show_columns=columns_visible(
            many_groups=many_groups,
            group_query=group_query,
            pinned_groups=pinned_groups,
            include_joined_groups=include_joined_groups,
        ),
    )


__all__ = [
    "MIN_QUERY_LENGTH",
    "AxisVisibility",
    "columns_visible",
    "query_is_specific",
    "resolve_axes",
    "rows_visible",
]
