# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Scheduling capability used by the request queue.

The queue never sleeps or yields directly; it goes through a Scheduler so that
tests can drive it with a simulated clock instead of real timers.
"""

import asyncio
import time
from typing import Protocol


class Scheduler(Protocol):
    """Suspension points and clock for cooperative processing."""

    async def after(self, delay: float) -> None:
        """Resume after `delay` seconds."""

    async def yield_now(self) -> None:
        """Give the event loop a chance to run other work, then resume."""

    def now(self) -> float:
        """Monotonic time in seconds."""


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    async def after(self, delay: float) -> None:
        await asyncio.sleep(delay)

    async def yield_now(self) -> None:
        await asyncio.sleep(0)

    def now(self) -> float:
        return time.perf_counter()
