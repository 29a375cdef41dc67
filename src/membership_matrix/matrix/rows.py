from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, Sequence

from membership_matrix.data import Principal
from membership_matrix.config.settings import DEFAULT_PAGE_SIZE

MAX_LABEL_LENGTH: Final[int] = 25
TRUNCATED_LABEL_LENGTH: Final[int] = 22


def sort_label(principal: Principal) -> str:
    """``"Ada Lovelace"`` sorts as ``"Lovelace Ada"``; nameless rows by id."""
    if principal.fullname:
        return " ".join(reversed(principal.fullname.split(" ")))
    return principal.id


def sort_principals(principals: Iterable[Principal]) -> list[Principal]:
    return sorted(principals, key=sort_label)


def visible_rows(principals: Iterable[Principal], *, show_rows: bool) -> list[Principal]:
    if not show_rows:
        return []
    return sort_principals(principals)


def display_label(principal: Principal) -> str:
    fullname = principal.fullname
    if fullname and len(fullname) > MAX_LABEL_LENGTH:
        return fullname[:TRUNCATED_LABEL_LENGTH] + "..."
    return fullname or principal.id


def display_title(principal: Principal) -> str:
    return f"{principal.fullname or ''} {principal.id}".strip()


@dataclass(slots=True)
class RowPager:
    """Row limit that grows one page at a time."""

    page_size: int = DEFAULT_PAGE_SIZE
    limit: int = 0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.limit <= 0:
            self.limit = self.page_size

    def load_more(self) -> int:
        self.limit += self.page_size
        return self.limit

    def has_more(self, rows: Sequence[Principal]) -> bool:
        """Offer another page unless fewer than ``page_size`` rows came back."""
        return not len(rows) < self.page_size


__all__ = [
    "MAX_LABEL_LENGTH",
    "RowPager",
    "display_label",
    "display_title",
    "sort_label",
    "sort_principals",
    "visible_rows",
]
