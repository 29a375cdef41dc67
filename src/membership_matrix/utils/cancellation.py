from __future__ import annotations

import asyncio
import logging
from typing import Callable


logger = logging.getLogger(__name__)


class CancellationError(asyncio.CancelledError):
    """Raised when a directory call was abandoned through its token."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason


class CancellationToken:
    """Read-only view handed to the code doing the work."""

    __slots__ = ("_source",)

    def __init__(self, source: "CancellationTokenSource") -> None:
        self._source = source

    @property
    def cancelled(self) -> bool:
        return self._source.cancelled

    @property
    def reason(self) -> str | None:
        return self._source.reason

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancellationError(self.reason)

    def link_task(self, task: asyncio.Task[object] | None = None) -> Callable[[], None]:
        """Cancel ``task`` (default: the current task) when the token fires."""
        target = task or asyncio.current_task()
        if target is None:
            raise RuntimeError("link_task() must be called from within a running task")
        return self._source._link(target)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled}, reason={self.reason!r})"


class CancellationTokenSource:
    """Owns a token; a fetch that gets superseded is cancelled through it."""

    __slots__ = ("_cancelled", "_reason", "_tasks", "_token")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._tasks: set[asyncio.Task[object]] = set()
        self._token = CancellationToken(self)

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, *, reason: str | None = None) -> bool:
        if self._cancelled:
            return False
        self._cancelled = True
        self._reason = reason
        for task in list(self._tasks):
            if not task.done():
                task.cancel(reason)
        logger.debug("Cancellation requested: %s (%d linked tasks)", reason, len(self._tasks))
        return True

    def _link(self, task: asyncio.Task[object]) -> Callable[[], None]:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        if self._cancelled and not task.done():
            task.cancel(self._reason)

        def unlink() -> None:
            self._tasks.discard(task)

        return unlink


__all__ = ["CancellationError", "CancellationToken", "CancellationTokenSource"]
