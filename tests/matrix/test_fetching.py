from __future__ import annotations

import asyncio

import pytest

from membership_matrix.matrix.fetching import AxisFetcher
from membership_matrix.utils import CancellationToken


class _Recorder:
    def __init__(self) -> None:
        self.fetched: list[str] = []
        self.applied: list[tuple[str, str]] = []
        self.tokens: dict[str, CancellationToken] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def fetch(self, request: str, token: CancellationToken) -> str:
        self.fetched.append(request)
        self.tokens[request] = token
        gate = self.gates.get(request)
        if gate is not None:
            await gate.wait()
        return f"result:{request}"

    def apply(self, request: str, result: str) -> None:
        self.applied.append((request, result))


@pytest.mark.asyncio
async def test_schedule_keeps_only_the_last_request() -> None:
    recorder = _Recorder()
    fetcher = AxisFetcher("rows", recorder.fetch, recorder.apply, delay=10.0)

    fetcher.schedule("a")
    fetcher.schedule("al")
    fetcher.schedule("ali")
    assert recorder.fetched == []
    assert fetcher.pending

    await fetcher.flush()

    assert recorder.fetched == ["ali"]
    assert recorder.applied == [("ali", "result:ali")]
    assert fetcher.latest_sequence == 1
    assert not fetcher.pending


@pytest.mark.asyncio
async def test_debounced_fetch_fires_after_delay() -> None:
    recorder = _Recorder()
    fetcher = AxisFetcher("groups", recorder.fetch, recorder.apply, delay=0.01)

    fetcher.schedule("ed")
    await asyncio.sleep(0.05)
    await fetcher.flush()

    assert recorder.applied == [("ed", "result:ed")]


@pytest.mark.asyncio
async def test_stale_response_is_discarded() -> None:
    recorder = _Recorder()
    recorder.gates["slow"] = asyncio.Event()
    fetcher = AxisFetcher("rows", recorder.fetch, recorder.apply, delay=0.0)

    slow = asyncio.create_task(fetcher.fetch_now("slow"))
    await asyncio.sleep(0)
    fast = await fetcher.fetch_now("fast")
    recorder.gates["slow"].set()
    stale = await slow

    assert fast.applied is True
    assert stale.applied is False
    assert stale.sequence < fast.sequence
    assert recorder.applied == [("fast", "result:fast")]
    assert fetcher.applied_sequence == fast.sequence


@pytest.mark.asyncio
async def test_newer_fetch_cancels_token_of_older_one() -> None:
    recorder = _Recorder()
    recorder.gates["old"] = asyncio.Event()
    fetcher = AxisFetcher("rows", recorder.fetch, recorder.apply, delay=0.0)

    older = asyncio.create_task(fetcher.fetch_now("old"))
    await asyncio.sleep(0)
    await fetcher.fetch_now("new")

    assert recorder.tokens["old"].cancelled is True
    assert recorder.tokens["new"].cancelled is False
    recorder.gates["old"].set()
    await older


@pytest.mark.asyncio
async def test_superseded_fetch_cancels_its_linked_task() -> None:
    applied: list[str] = []
    started = asyncio.Event()

    async def fetch(request: str, token: CancellationToken) -> str:
        if request == "old":
            token.link_task()
            started.set()
            await asyncio.sleep(10)
        return request

    fetcher = AxisFetcher("rows", fetch, lambda _req, result: applied.append(result), delay=0.0)

    async def run_old():
        return await fetcher.fetch_now("old")

    old_task = asyncio.create_task(run_old())
    await started.wait()
    await fetcher.fetch_now("new")

    with pytest.raises(asyncio.CancelledError):
        await old_task
    assert applied == ["new"]


@pytest.mark.asyncio
async def test_aclose_drops_pending_requests() -> None:
    recorder = _Recorder()
    fetcher = AxisFetcher("rows", recorder.fetch, recorder.apply, delay=10.0)

    fetcher.schedule("never")
    await fetcher.aclose()
    await fetcher.flush()

    assert recorder.fetched == []
