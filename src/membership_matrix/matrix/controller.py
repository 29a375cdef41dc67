from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from membership_matrix.auth import (
    GroupAssignmentCheck,
    ManagerCheck,
    can_assign_group,
    is_manager,
    principal_id_from_token,
)
from membership_matrix.config import Settings
from membership_matrix.data import ColumnOption, DirectoryGroup, Principal
from membership_matrix.directory import AuthorizationError
from membership_matrix.matrix.axes import AxisVisibility, resolve_axes
from membership_matrix.matrix.columns import build_columns
from membership_matrix.matrix.fetching import AxisFetcher, FetchOutcome
from membership_matrix.matrix.messages import Message
from membership_matrix.matrix.mutations import MutationCoordinator
from membership_matrix.matrix.rows import (
    RowPager,
    display_label,
    display_title,
    visible_rows,
)
from membership_matrix.services import DirectoryBackend, EventHook, NotificationSink
from membership_matrix.utils import CancellationToken, get_logger
from membership_matrix.utils.errors import ErrorDescriptor, describe_exception


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MatrixQuery:
    """Search and filter state driving both axes."""

    user_query: str = ""
    group_query: str = ""
    pinned_groups: tuple[ColumnOption, ...] = ()
    include_joined_groups: bool = False
    many_users: bool = False
    many_groups: bool = False

    @property
    def visibility(self) -> AxisVisibility:
        return resolve_axes(
            many_users=self.many_users,
            many_groups=self.many_groups,
            user_query=self.user_query,
            group_query=self.group_query,
            pinned_groups=self.pinned_groups,
            include_joined_groups=self.include_joined_groups,
        )

    @property
    def pinned_group_ids(self) -> tuple[str, ...]:
        return tuple(column.value for column in self.pinned_groups)


@dataclass(frozen=True, slots=True)
class RowRequest:
    search: str
    group_filter_ids: tuple[str, ...]
    limit: int


@dataclass(frozen=True, slots=True)
class GroupRequest:
    search: str


@dataclass(slots=True)
class MatrixColumn:
    option: ColumnOption
    enabled: bool

    @property
    def value(self) -> str:
        return self.option.value

    @property
    def label(self) -> str:
        return self.option.label


@dataclass(slots=True)
class MatrixCell:
    group_id: str
    principal_id: str
    checked: bool
    enabled: bool
    pending: bool = False


@dataclass(slots=True)
class MatrixRow:
    principal_id: str
    label: str
    title: str
    cells: list[MatrixCell] = field(default_factory=list)


@dataclass(slots=True)
class MatrixSnapshot:
    """Everything a front end needs to draw the matrix once."""

    visibility: AxisVisibility
    columns: list[MatrixColumn]
    rows: list[MatrixRow]
    show_more: bool
    empty_message: str | None

    @property
    def show_grid(self) -> bool:
        return bool(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class MembershipMatrixController:
    """Bridge between a matrix front end and the directory.

    Query changes schedule debounced fetches for the axes they affect,
    ``snapshot`` derives the grid from the last applied responses and the
    toggles go through the :class:`MutationCoordinator`.
    """

    def __init__(
        self,
        directory: DirectoryBackend,
        notifier: NotificationSink,
        *,
        settings: Settings | None = None,
        session_token: str | None = None,
        manager_check: ManagerCheck = is_manager,
        assignment_check: GroupAssignmentCheck = can_assign_group,
    ) -> None:
        self._settings = settings or Settings()
        self._directory = directory
        self._session_token = session_token
        self._manager_check = manager_check
        self._assignment_check = assignment_check

        self._query = MatrixQuery(
            many_users=self._settings.many_users,
            many_groups=self._settings.many_groups,
        )
        self._pager = RowPager(page_size=self._settings.page_size)
        self._principals: list[Principal] = []
        self._groups: list[DirectoryGroup] = []
        self._acting_principal: Principal | None = None
        self._is_manager = False

        self._principals_version = 0
        self._groups_version = 0
        self._columns_key: tuple[object, ...] | None = None
        self._columns: list[ColumnOption] = []

        self.updated: EventHook[str] = EventHook("matrix.updated")
        self.errors: EventHook[ErrorDescriptor] = EventHook("matrix.errors")

        self._row_fetcher: AxisFetcher[RowRequest, list[Principal]] = AxisFetcher(
            "rows",
            self._fetch_rows,
            self._apply_rows,
            delay=self._settings.debounce_seconds,
        )
        self._group_fetcher: AxisFetcher[GroupRequest, list[DirectoryGroup]] = AxisFetcher(
            "groups",
            self._fetch_groups,
            self._apply_groups,
            delay=self._settings.debounce_seconds,
        )
        self._coordinator = MutationCoordinator(directory, notifier, self.refresh_rows)

    # ------------------------------------------------------------------ State

    @property
    def query(self) -> MatrixQuery:
        return self._query

    @property
    def limit(self) -> int:
        return self._pager.limit

    @property
    def page_size(self) -> int:
        return self._pager.page_size

    @property
    def acting_principal(self) -> Principal | None:
        return self._acting_principal

    @property
    def is_manager(self) -> bool:
        return self._is_manager

    @property
    def groups(self) -> list[DirectoryGroup]:
        return list(self._groups)

    def rows(self) -> list[Principal]:
        return visible_rows(self._principals, show_rows=self._query.visibility.show_rows)

    def columns(self) -> list[ColumnOption]:
        query = self._query
        key: tuple[object, ...] = (
            self._groups_version,
            query.group_query,
            query.many_groups,
            query.pinned_groups,
            query.include_joined_groups,
            self._principals_version if query.include_joined_groups else None,
            query.visibility.show_rows if query.include_joined_groups else None,
        )
        if key != self._columns_key:
            self._columns = build_columns(
                self._groups,
                group_query=query.group_query,
                many_groups=query.many_groups,
                pinned_groups=query.pinned_groups,
                include_joined_groups=query.include_joined_groups,
                principals=self.rows(),
            )
            self._columns_key = key
        return list(self._columns)

    def can_assign(self, column: ColumnOption) -> bool:
        return self._assignment_check(self._is_manager, column)

    # -------------------------------------------------------------- Lifecycle

    async def start(self) -> None:
        """Resolve the acting principal, then load whatever axis is visible."""
        principal_id = principal_id_from_token(self._session_token)
        principal = (
            await self._directory.fetch_principal(principal_id) if principal_id else None
        )
        self._acting_principal = principal
        self._is_manager = self._manager_check(principal)
        logger.debug(
            "Matrix session resolved",
            principal_id=principal_id,
            is_manager=self._is_manager,
        )

        visibility = self._query.visibility
        if visibility.show_rows:
            self._row_fetcher.schedule(self._row_request())
        if visibility.show_columns:
            self._group_fetcher.schedule(self._group_request())

    async def flush(self) -> None:
        """Run pending debounced fetches now and wait for all fetches."""
        await self._group_fetcher.flush()
        await self._row_fetcher.flush()

    async def aclose(self) -> None:
        await self._row_fetcher.aclose()
        await self._group_fetcher.aclose()

    # ---------------------------------------------------------------- Queries

    def update_query(
        self,
        *,
        user_query: str | None = None,
        group_query: str | None = None,
        pinned_groups: Sequence[ColumnOption] | None = None,
        include_joined_groups: bool | None = None,
        many_users: bool | None = None,
        many_groups: bool | None = None,
    ) -> AxisVisibility:
        previous = self._query
        changes: dict[str, object] = {}
        if user_query is not None:
            changes["user_query"] = user_query
        if group_query is not None:
            changes["group_query"] = group_query
        if pinned_groups is not None:
            changes["pinned_groups"] = tuple(pinned_groups)
        if include_joined_groups is not None:
            changes["include_joined_groups"] = include_joined_groups
        if many_users is not None:
            changes["many_users"] = many_users
        if many_groups is not None:
            changes["many_groups"] = many_groups
        current = replace(previous, **changes)
        self._query = current

        before, after = previous.visibility, current.visibility
        if not after.show_rows and self._principals:
            self._principals = []
            self._principals_version += 1

        rows_inputs_changed = (
            previous.user_query != current.user_query
            or previous.pinned_group_ids != current.pinned_group_ids
            or before.show_rows != after.show_rows
        )
        if rows_inputs_changed and after.show_rows:
            self._row_fetcher.schedule(self._row_request())

        groups_inputs_changed = (
            previous.group_query != current.group_query
            or before.show_columns != after.show_columns
        )
        if groups_inputs_changed and after.show_columns:
            self._group_fetcher.schedule(self._group_request())

        return after

    def load_more(self) -> int:
        limit = self._pager.load_more()
        if self._query.visibility.show_rows:
            self._row_fetcher.schedule(self._row_request())
        return limit

    async def refresh_rows(self) -> FetchOutcome[RowRequest, list[Principal]] | None:
        """Re-fetch rows with the current query, filter and limit.

        Hidden rows are never listed, so there is nothing to refresh then.
        """
        if not self._query.visibility.show_rows:
            return None
        return await self._row_fetcher.fetch_now(self._row_request())

    # ---------------------------------------------------------------- Actions

    async def toggle_cell(self, group_id: str, principal_id: str, checked: bool) -> None:
        try:
            self._ensure_assignable(group_id)
            await self._coordinator.toggle_cell(group_id, principal_id, checked)
        except Exception as exc:  # noqa: BLE001
            self._publish_failure(exc)
            raise

    async def toggle_column(self, group_id: str, checked: bool) -> None:
        principal_ids = [principal.id for principal in self.rows()]
        try:
            self._ensure_assignable(group_id)
            await self._coordinator.toggle_column(group_id, principal_ids, checked)
        except Exception as exc:  # noqa: BLE001
            self._publish_failure(exc)
            raise

    # --------------------------------------------------------------- Snapshot

    def snapshot(self) -> MatrixSnapshot:
        visibility = self._query.visibility
        rows = self.rows()
        columns = [
            MatrixColumn(option=option, enabled=self.can_assign(option))
            for option in self.columns()
        ]

        matrix_rows: list[MatrixRow] = []
        for principal in rows:
            joined = set(principal.groups.ids())
            matrix_rows.append(
                MatrixRow(
                    principal_id=principal.id,
                    label=display_label(principal),
                    title=display_title(principal),
                    cells=[
                        MatrixCell(
                            group_id=column.value,
                            principal_id=principal.id,
                            checked=column.value in joined,
                            enabled=column.enabled,
                            pending=self._coordinator.is_pending(column.value, principal.id),
                        )
                        for column in columns
                    ],
                )
            )

        empty_message: str | None = None
        if not rows:
            if visibility.show_rows and self._query.user_query:
                empty_message = Message.NO_USER_FOUND.value
            else:
                empty_message = Message.PLEASE_SEARCH_OR_FILTER_USERS.value

        return MatrixSnapshot(
            visibility=visibility,
            columns=columns,
            rows=matrix_rows,
            show_more=self._pager.has_more(rows),
            empty_message=empty_message,
        )

    # ------------------------------------------------------------- Internals

    def _row_request(self) -> RowRequest:
        return RowRequest(
            search=self._query.user_query,
            group_filter_ids=self._query.pinned_group_ids,
            limit=self._pager.limit,
        )

    def _group_request(self) -> GroupRequest:
        return GroupRequest(search=self._query.group_query)

    async def _fetch_rows(
        self, request: RowRequest, token: CancellationToken
    ) -> list[Principal]:
        return await self._directory.list_principals(
            search=request.search,
            group_filter_ids=request.group_filter_ids,
            limit=request.limit,
            cancellation_token=token,
        )

    def _apply_rows(self, request: RowRequest, principals: list[Principal]) -> None:
        self._principals = list(principals)
        self._principals_version += 1
        self.updated.emit("rows")

    async def _fetch_groups(
        self, request: GroupRequest, token: CancellationToken
    ) -> list[DirectoryGroup]:
        return await self._directory.list_groups(
            search=request.search, cancellation_token=token
        )

    def _apply_groups(self, request: GroupRequest, groups: list[DirectoryGroup]) -> None:
        self._groups = list(groups)
        self._groups_version += 1
        self.updated.emit("groups")

    def _ensure_assignable(self, group_id: str) -> None:
        for column in self.columns():
            if column.value == group_id and not self.can_assign(column):
                raise AuthorizationError(f"Not allowed to change members of {group_id}")

    def _publish_failure(self, error: Exception) -> None:
        descriptor = describe_exception(error)
        logger.warning(
            "Membership update failed",
            headline=descriptor.headline,
            detail=descriptor.detail,
        )
        self.errors.emit(descriptor)


__all__ = [
    "GroupRequest",
    "MatrixCell",
    "MatrixColumn",
    "MatrixQuery",
    "MatrixRow",
    "MatrixSnapshot",
    "MembershipMatrixController",
    "RowRequest",
]
