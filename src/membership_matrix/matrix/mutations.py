from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable

from membership_matrix.matrix.messages import Message
from membership_matrix.services import DirectoryBackend, NotificationSink
from membership_matrix.utils import get_logger


logger = get_logger(__name__)

RefreshRows = Callable[[], Awaitable[object]]
CellKey = tuple[str, str]


class CellLocks:
    """One in-flight token per ``(group_id, principal_id)`` cell.

    Holding a cell queues every later write to it until the holder's write,
    refresh and notification have finished. Several cells are acquired in
    sorted order so a column write and a cell write never deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[CellKey, asyncio.Lock] = {}
        self._holders: Counter[CellKey] = Counter()

    def is_pending(self, group_id: str, principal_id: str) -> bool:
        lock = self._locks.get((group_id, principal_id))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, group_id: str, principal_ids: Iterable[str]) -> AsyncIterator[None]:
        keys = sorted({(group_id, principal_id) for principal_id in principal_ids})
        for key in keys:
            self._holders[key] += 1
        acquired: list[asyncio.Lock] = []
        try:
            for key in keys:
                lock = self._locks.setdefault(key, asyncio.Lock())
                if lock.locked():
                    logger.debug(
                        "Queued behind pending write",
                        group_id=key[0],
                        principal_id=key[1],
                    )
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in keys:
                self._holders[key] -= 1
                if self._holders[key] <= 0:
                    del self._holders[key]
                    self._locks.pop(key, None)


class MutationCoordinator:
    """Write membership changes, then refresh the rows and notify.

    Refresh and notification are chained on a successful write only; a
    failing write propagates and nothing else happens. Writes are never
    retried here.
    """

    def __init__(
        self,
        directory: DirectoryBackend,
        notifier: NotificationSink,
        refresh_rows: RefreshRows,
    ) -> None:
        self._directory = directory
        self._notifier = notifier
        self._refresh_rows = refresh_rows
        self._locks = CellLocks()

    def is_pending(self, group_id: str, principal_id: str) -> bool:
        return self._locks.is_pending(group_id, principal_id)

    async def toggle_cell(self, group_id: str, principal_id: str, checked: bool) -> None:
        await self._write(group_id, {principal_id: bool(checked)})

    async def toggle_column(
        self,
        group_id: str,
        principal_ids: Iterable[str],
        checked: bool,
    ) -> None:
        members = {principal_id: bool(checked) for principal_id in principal_ids}
        await self._write(group_id, members)

    async def _write(self, group_id: str, members: dict[str, bool]) -> None:
        async with self._locks.hold(group_id, members):
            await self._directory.set_group_members(group_id, members)
            await self._refresh_rows()
            self._notifier.notify_success(
                Message.SUCCESS.value, Message.MEMBERSHIP_UPDATED.value
            )
        logger.info("Membership updated", group_id=group_id, count=len(members))


__all__ = ["CellLocks", "MutationCoordinator", "RefreshRows"]
