"""Axis gating, column assembly, row ordering and membership mutations."""

from .axes import AxisVisibility, columns_visible, resolve_axes, rows_visible
from .columns import build_columns
from .controller import (
    MatrixCell,
    MatrixColumn,
    MatrixQuery,
    MatrixRow,
    MatrixSnapshot,
    MembershipMatrixController,
)
from .fetching import AxisFetcher, FetchOutcome
from .messages import Message
from .mutations import CellLocks, MutationCoordinator
from .rows import RowPager, sort_principals, visible_rows

__all__ = [
    "AxisVisibility",
    "columns_visible",
    "resolve_axes",
    "rows_visible",
    "build_columns",
    "MatrixCell",
    "MatrixColumn",
    "MatrixQuery",
    "MatrixRow",
    "MatrixSnapshot",
    "MembershipMatrixController",
    "AxisFetcher",
    "FetchOutcome",
    "Message",
    "CellLocks",
    "MutationCoordinator",
    "RowPager",
    "sort_principals",
    "visible_rows",
]
