from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, ParamSpec

P = ParamSpec("P")


def call_later(delay: float, func: Callable[[], None]) -> Callable[[], None]:
    loop = asyncio.get_running_loop()
    handle = loop.call_later(delay, func)
    return handle.cancel


class Debouncer(Generic[P]):
    """Delay calls to ``func`` until ``delay`` seconds pass without a new call.

    Only the arguments of the most recent call survive. ``flush`` runs a
    pending call immediately, ``cancel`` drops it.
    """

    def __init__(self, func: Callable[P, None], delay: float) -> None:
        self._func = func
        self._delay = delay
        self._cancel_timer: Callable[[], None] | None = None
        self._pending: tuple[tuple[Any, ...], dict[str, Any]] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> None:
        self._clear_timer()
        self._pending = (args, kwargs)
        self._cancel_timer = call_later(self._delay, self._fire)

    def flush(self) -> bool:
        if self._pending is None:
            return False
        self._clear_timer()
        self._fire()
        return True

    def cancel(self) -> None:
        self._clear_timer()
        self._pending = None

    def _fire(self) -> None:
        self._cancel_timer = None
        pending, self._pending = self._pending, None
        if pending is None:
            return
        args, kwargs = pending
        self._func(*args, **kwargs)

    def _clear_timer(self) -> None:
        if self._cancel_timer is not None:
            self._cancel_timer()
            self._cancel_timer = None


__all__ = ["Debouncer", "call_later"]
