from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from membership_matrix.utils import (
    CancellationError,
    CancellationToken,
    CancellationTokenSource,
    Debouncer,
    get_logger,
)


logger = get_logger(__name__)

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


@dataclass(slots=True)
class FetchOutcome(Generic[RequestT, ResultT]):
    sequence: int
    request: RequestT
    result: ResultT | None
    applied: bool


class AxisFetcher(Generic[RequestT, ResultT]):
    """Debounced, sequenced fetches for one axis of the matrix.

    Typing-driven fetches go through :meth:`schedule`, which waits ``delay``
    seconds and keeps only the last request. Every fetch that actually
    starts takes the next sequence number and cancels the ones still in
    flight; a result reaches ``apply`` only when its sequence number is the
    latest one issued, so a slow stale response can never overwrite a newer
    one.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[RequestT, CancellationToken], Awaitable[ResultT]],
        apply: Callable[[RequestT, ResultT], None],
        *,
        delay: float,
    ) -> None:
        self._name = name
        self._fetch = fetch
        self._apply = apply
        self._debouncer: Debouncer[[RequestT]] = Debouncer(self._launch, delay)
        self._issued = 0
        self._applied = 0
        self._in_flight: dict[int, CancellationTokenSource] = {}
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def name(self) -> str:
        return self._name

    @property
    def latest_sequence(self) -> int:
        return self._issued

    @property
    def applied_sequence(self) -> int:
        return self._applied

    @property
    def pending(self) -> bool:
        return self._debouncer.pending or bool(self._in_flight)

    def schedule(self, request: RequestT) -> None:
        self._debouncer(request)

    async def fetch_now(self, request: RequestT) -> FetchOutcome[RequestT, ResultT]:
        sequence, source = self._begin()
        return await self._run(sequence, source, request)

    async def flush(self) -> None:
        """Start any pending debounced fetch and wait for every running one."""
        self._debouncer.flush()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self._debouncer.cancel()
        for source in list(self._in_flight.values()):
            source.cancel(reason=f"{self._name} fetcher closed")
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------- Internals

    def _launch(self, request: RequestT) -> None:
        sequence, source = self._begin()
        task = asyncio.get_running_loop().create_task(
            self._run_in_background(sequence, source, request)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _begin(self) -> tuple[int, CancellationTokenSource]:
        self._issued += 1
        sequence = self._issued
        for older, source in list(self._in_flight.items()):
            source.cancel(reason=f"superseded by #{sequence}")
            logger.debug("Cancelled stale fetch", axis=self._name, sequence=older)
        source = CancellationTokenSource()
        self._in_flight[sequence] = source
        return sequence, source

    async def _run(
        self,
        sequence: int,
        source: CancellationTokenSource,
        request: RequestT,
    ) -> FetchOutcome[RequestT, ResultT]:
        try:
            result = await self._fetch(request, source.token)
        except CancellationError:
            if not source.cancelled:
                raise
            return FetchOutcome(sequence=sequence, request=request, result=None, applied=False)
        finally:
            self._in_flight.pop(sequence, None)

        if sequence != self._issued:
            logger.debug(
                "Discarded stale response",
                axis=self._name,
                sequence=sequence,
                latest=self._issued,
            )
            return FetchOutcome(sequence=sequence, request=request, result=result, applied=False)

        self._apply(request, result)
        self._applied = sequence
        return FetchOutcome(sequence=sequence, request=request, result=result, applied=True)

    async def _run_in_background(
        self,
        sequence: int,
        source: CancellationTokenSource,
        request: RequestT,
    ) -> None:
        try:
            await self._run(sequence, source, request)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001 - no caller to propagate to
            logger.exception("Background fetch failed", axis=self._name, sequence=sequence)


__all__ = ["AxisFetcher", "FetchOutcome"]
