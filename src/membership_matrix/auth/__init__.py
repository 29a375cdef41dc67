"""Session resolution and membership authorization."""

from .policy import (
    MANAGER_ROLE,
    GroupAssignmentCheck,
    ManagerCheck,
    can_assign_group,
    is_manager,
)
from .session import principal_id_from_token

__all__ = [
    "MANAGER_ROLE",
    "GroupAssignmentCheck",
    "ManagerCheck",
    "can_assign_group",
    "is_manager",
    "principal_id_from_token",
]
