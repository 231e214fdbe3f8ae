"""Request deadline — one wall-clock budget shared by every await in a request."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class DeadlineExceeded(Exception):
    """The request's wall-clock budget ran out."""


class Deadline:
    """Created once at request entry and passed down to every model call,
    tool dispatch and persistence call. Nothing below it starts its own timer.

    ``grace`` is extra time granted only to cleanup work (the best-effort
    save after a timeout or cancellation).
    """

    def __init__(self, seconds: float, grace: float = 0.0) -> None:
        self._expires_at = time.monotonic() + seconds
        self._grace = grace

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def check(self) -> None:
        if self.expired:
            raise DeadlineExceeded()

    async def run(self, aw: Awaitable[T], *, cleanup: bool = False) -> T:
        """Await ``aw`` within the remaining budget (plus grace for cleanup)."""
        budget = self.remaining() + (self._grace if cleanup else 0.0)
        if budget <= 0:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise DeadlineExceeded()
        try:
            return await asyncio.wait_for(aw, timeout=budget)
        except asyncio.TimeoutError as exc:
            raise DeadlineExceeded() from exc
