from __future__ import annotations

from enum import StrEnum


class Message(StrEnum):
    SUCCESS = "Success"
    MEMBERSHIP_UPDATED = "Membership updated"
    NO_USER_FOUND = "No user found"
    PLEASE_SEARCH_OR_FILTER_USERS = "Please search or filter users"


__all__ = ["Message"]
