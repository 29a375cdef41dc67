from .column import ColumnOption
from .common import DirectoryBaseModel, DirectoryResource
from .group import AUTHENTICATED_USERS, DirectoryGroup
from .principal import GroupMembership, GroupReference, Principal

__all__ = [
    "AUTHENTICATED_USERS",
    "ColumnOption",
    "DirectoryBaseModel",
    "DirectoryGroup",
    "DirectoryResource",
    "GroupMembership",
    "GroupReference",
    "Principal",
]
