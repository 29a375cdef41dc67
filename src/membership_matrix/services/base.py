from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import Awaitable, Callable, Generic, TypeVar

from membership_matrix.utils import CancellationError, get_logger


logger = get_logger(__name__)

EventT = TypeVar("EventT")
ReturnT = TypeVar("ReturnT")

Subscriber = Callable[[EventT], None]


class MutationStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventHook(Generic[EventT]):
    """Synchronous fan-out to subscribers.

    A subscriber that raises is logged under the hook's ``name`` and the
    remaining subscribers still run.
    """

    __slots__ = ("_name", "_subscribers")

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._subscribers: list[Subscriber[EventT]] = []

    @property
    def name(self) -> str:
        return self._name

    def subscribe(self, callback: Subscriber[EventT]) -> Callable[[], None]:
        """Register ``callback``; the returned function removes it again."""
        self._subscribers.append(callback)
        return partial(self._discard, callback)

    def emit(self, payload: EventT) -> None:
        for callback in tuple(self._subscribers):
            try:
                callback(payload)
            except Exception:  # noqa: BLE001 - one subscriber must not starve the rest
                logger.exception("Event subscriber failed", hook=self._name)

    def _discard(self, callback: Subscriber[EventT]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def __len__(self) -> int:
        return len(self._subscribers)


async def track_mutation(
    *,
    hook: EventHook[EventT],
    build_event: Callable[[MutationStatus, BaseException | None], EventT],
    write: Callable[[], Awaitable[ReturnT]],
) -> ReturnT:
    """Publish PENDING, run ``write``, then SUCCEEDED or FAILED.

    Cancellation is reported as a failure too. The error always propagates.
    """
    hook.emit(build_event(MutationStatus.PENDING, None))
    try:
        result = await write()
    except (CancellationError, Exception) as exc:
        hook.emit(build_event(MutationStatus.FAILED, exc))
        raise
    hook.emit(build_event(MutationStatus.SUCCEEDED, None))
    return result


@dataclass(slots=True)
class ServiceErrorEvent:
    """A directory call that failed; ``operation`` names the service method."""

    operation: str
    error: Exception


__all__ = [
    "EventHook",
    "MutationStatus",
    "ServiceErrorEvent",
    "Subscriber",
    "track_mutation",
]
