"""Shared fixtures: a manually driven scheduler for queue tests."""

import asyncio

import pytest


class ManualScheduler:
    """
    Scheduler with a simulated clock.

    Timers only fire when the test calls advance(). Yields either pass straight
    through or, with hold_yields set, wait until release_yields() so a test can
    act while a drain is suspended.
    """

    def __init__(self) -> None:
        self.time: float = 0.0
        self.yields: int = 0
        self.hold_yields: bool = False
        self._timers: list[tuple[float, asyncio.Future[None]]] = []
        self._held: list[asyncio.Future[None]] = []

    async def after(self, delay: float) -> None:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._timers.append((self.time + delay, fut))
        await fut

    async def yield_now(self) -> None:
        self.yields += 1
        if self.hold_yields:
            fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._held.append(fut)
            await fut
        else:
            await asyncio.sleep(0)

    def now(self) -> float:
        return self.time

    def tick(self, seconds: float) -> None:
        """Move the clock without firing timers (simulates CPU time)."""
        self.time += seconds

    @property
    def held(self) -> int:
        """Number of continuations waiting on a held yield."""
        return sum(1 for fut in self._held if not fut.done())

    async def settle(self) -> None:
        """Let ready tasks run."""
        for _ in range(10):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move the clock and fire every timer that is now due."""
        # Let freshly created tasks register their timers at the current time
        await self.settle()
        self.time += seconds
        remaining: list[tuple[float, asyncio.Future[None]]] = []
        for due, fut in self._timers:
            if due <= self.time + 1e-9:
                if not fut.done():
                    fut.set_result(None)
            else:
                remaining.append((due, fut))
        self._timers = remaining
        await self.settle()

    async def release_yields(self) -> None:
        """Resume every held yield."""
        held, self._held = self._held, []
        for fut in held:
            if not fut.done():
                fut.set_result(None)
        await self.settle()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """A fresh manual scheduler."""
    return ManualScheduler()
