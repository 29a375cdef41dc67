from __future__ import annotations

from typing import Callable, Final

from membership_matrix.data import ColumnOption, Principal


MANAGER_ROLE: Final[str] = "Manager"

ManagerCheck = Callable[[Principal | None], bool]
GroupAssignmentCheck = Callable[[bool, ColumnOption], bool]


def is_manager(principal: Principal | None) -> bool:
    if principal is None:
        return False
    return MANAGER_ROLE in principal.roles


def can_assign_group(is_manager: bool, column: ColumnOption) -> bool:
    """Managers may edit any group; everyone else only groups that do not
    grant the Manager role."""
    if is_manager:
        return True
    return MANAGER_ROLE not in column.roles


__all__ = [
    "MANAGER_ROLE",
    "GroupAssignmentCheck",
    "ManagerCheck",
    "can_assign_group",
    "is_manager",
]
