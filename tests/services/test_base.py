from __future__ import annotations

import asyncio

import pytest

from membership_matrix.services.base import EventHook, MutationStatus, track_mutation
from membership_matrix.utils import CancellationError

Recorded = tuple[MutationStatus, BaseException | None]


def _recorder() -> tuple[EventHook[Recorded], list[Recorded]]:
    hook: EventHook[Recorded] = EventHook("test")
    emitted: list[Recorded] = []
    hook.subscribe(emitted.append)
    return hook, emitted


@pytest.mark.asyncio
async def test_track_mutation_emits_pending_and_success() -> None:
    hook, emitted = _recorder()

    async def write() -> str:
        return "patched"

    result = await track_mutation(hook=hook, build_event=lambda *event: event, write=write)

    assert result == "patched"
    assert emitted == [
        (MutationStatus.PENDING, None),
        (MutationStatus.SUCCEEDED, None),
    ]


@pytest.mark.asyncio
async def test_track_mutation_reports_failure_and_reraises() -> None:
    hook, emitted = _recorder()

    async def write() -> None:
        raise RuntimeError("patch rejected")

    with pytest.raises(RuntimeError, match="patch rejected"):
        await track_mutation(hook=hook, build_event=lambda *event: event, write=write)

    assert [status for status, _ in emitted] == [MutationStatus.PENDING, MutationStatus.FAILED]
    assert isinstance(emitted[1][1], RuntimeError)


@pytest.mark.asyncio
async def test_track_mutation_reports_cancellation() -> None:
    hook, emitted = _recorder()

    async def write() -> None:
        raise CancellationError("superseded")

    with pytest.raises(asyncio.CancelledError):
        await track_mutation(hook=hook, build_event=lambda *event: event, write=write)

    assert emitted[-1][0] is MutationStatus.FAILED
    assert isinstance(emitted[-1][1], CancellationError)


def test_event_hook_unsubscribe_and_failing_subscriber() -> None:
    hook: EventHook[str] = EventHook("matrix.updated")
    received: list[str] = []

    def broken(_: str) -> None:
        raise ValueError("subscriber bug")

    hook.subscribe(broken)
    unsubscribe = hook.subscribe(received.append)
    assert len(hook) == 2

    hook.emit("rows")
    unsubscribe()
    unsubscribe()
    hook.emit("groups")

    assert received == ["rows"]
    assert len(hook) == 1
    assert hook.name == "matrix.updated"
