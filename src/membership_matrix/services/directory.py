from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol

from membership_matrix.data import (
    DirectoryGroup,
    DirectoryResponseValidator,
    Principal,
)
from membership_matrix.directory import DirectoryAPIError, DirectoryClient, NotFoundError
from membership_matrix.services.base import (
    EventHook,
    MutationStatus,
    ServiceErrorEvent,
    track_mutation,
)
from membership_matrix.utils import CancellationError, CancellationToken, get_logger


logger = get_logger(__name__)


class DirectoryBackend(Protocol):
    """Operations the matrix needs from the user/group directory."""

    async def fetch_principal(
        self,
        principal_id: str,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> Principal | None: ...

    async def list_principals(
        self,
        *,
        search: str = "",
        group_filter_ids: Iterable[str] = (),
        limit: int | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> list[Principal]: ...

    async def list_groups(
        self,
        *,
        search: str = "",
        cancellation_token: CancellationToken | None = None,
    ) -> list[DirectoryGroup]: ...

    async def set_group_members(
        self,
        group_id: str,
        members: Mapping[str, bool],
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> None: ...


@dataclass(slots=True)
class MembershipChangeEvent:
    group_id: str
    members: dict[str, bool]
    status: MutationStatus
    error: BaseException | None = None


class DirectoryService:
    """Directory access for the matrix over the REST client.

    Listing failures are absorbed: they are logged, published on
    :attr:`errors` and reported as an empty listing. Membership writes raise.
    """

    def __init__(self, client: DirectoryClient) -> None:
        self._client = client
        self._principal_validator = DirectoryResponseValidator("users")
        self._group_validator = DirectoryResponseValidator("groups")

        self.errors: EventHook[ServiceErrorEvent] = EventHook("directory.errors")
        self.membership: EventHook[MembershipChangeEvent] = EventHook(
            "directory.membership"
        )

    # ---------------------------------------------------------------- Queries

    async def fetch_principal(
        self,
        principal_id: str,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> Principal | None:
        if not principal_id:
            return None
        try:
            payload = await self._client.get_user(
                principal_id, cancellation_token=cancellation_token
            )
        except CancellationError:
            raise
        except NotFoundError:
            logger.warning("Principal not found", principal_id=principal_id)
            return None
        except DirectoryAPIError as exc:
            logger.exception("Failed to fetch principal", principal_id=principal_id)
            self.errors.emit(ServiceErrorEvent(operation="fetch_principal", error=exc))
            return None
        self._principal_validator.reset()
        return self._principal_validator.parse(Principal, payload)

    async def list_principals(
        self,
        *,
        search: str = "",
        group_filter_ids: Iterable[str] = (),
        limit: int | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> list[Principal]:
        filter_ids = list(group_filter_ids)
        try:
            payloads = await self._client.list_users(
                search=search,
                groups_filter=filter_ids,
                limit=limit,
                cancellation_token=cancellation_token,
            )
        except CancellationError:
            raise
        except DirectoryAPIError as exc:
            logger.exception(
                "Failed to list principals", search=search, limit=limit
            )
            self.errors.emit(ServiceErrorEvent(operation="list_principals", error=exc))
            return []

        self._principal_validator.reset()
        principals = self._principal_validator.parse_many(Principal, payloads)
        invalid = len(self._principal_validator.issues())
        if invalid:
            logger.warning("Principal listing skipped invalid payloads", invalid=invalid)
        logger.debug(
            "Listed principals",
            search=search,
            group_filter_ids=filter_ids,
            limit=limit,
            count=len(principals),
        )
        return principals

    async def list_groups(
        self,
        *,
        search: str = "",
        cancellation_token: CancellationToken | None = None,
    ) -> list[DirectoryGroup]:
        try:
            payloads = await self._client.list_groups(
                query=search, cancellation_token=cancellation_token
            )
        except CancellationError:
            raise
        except DirectoryAPIError as exc:
            logger.exception("Failed to list groups", search=search)
            self.errors.emit(ServiceErrorEvent(operation="list_groups", error=exc))
            return []

        self._group_validator.reset()
        groups = self._group_validator.parse_many(DirectoryGroup, payloads)
        logger.debug("Listed groups", search=search, count=len(groups))
        return groups

    # ---------------------------------------------------------------- Actions

    async def set_group_members(
        self,
        group_id: str,
        members: Mapping[str, bool],
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> None:
        changes = {principal_id: bool(flag) for principal_id, flag in members.items()}

        def build_event(
            status: MutationStatus, error: BaseException | None = None
        ) -> MembershipChangeEvent:
            return MembershipChangeEvent(
                group_id=group_id,
                members=dict(changes),
                status=status,
                error=error,
            )

        async def write() -> None:
            if cancellation_token:
                cancellation_token.raise_if_cancelled()
            await self._client.update_group_members(
                group_id, changes, cancellation_token=cancellation_token
            )

        try:
            await track_mutation(
                hook=self.membership,
                build_event=build_event,
                write=write,
            )
        except CancellationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Failed to update group members",
                group_id=group_id,
                count=len(changes),
            )
            self.errors.emit(ServiceErrorEvent(operation="set_group_members", error=exc))
            raise
        logger.debug("Updated group members", group_id=group_id, count=len(changes))


__all__ = [
    "DirectoryBackend",
    "DirectoryService",
    "MembershipChangeEvent",
]
