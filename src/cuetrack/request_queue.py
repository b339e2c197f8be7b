# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Debounced, single-flight FIFO for spoken-word batches.

Batches are queued as they arrive and drained in order once the speech source
has been quiet for the debounce delay. Draining runs on the event loop but
yields back to it whenever the current slice has used up its processing
budget, so long bursts never starve other tasks.

Every reset bumps a generation counter. A drain that was suspended across a
reset sees the new generation when it resumes and stops without touching any
state.
"""

import asyncio
import enum
import logging
from collections import deque
from collections.abc import Callable, Iterable

from .scheduler import AsyncioScheduler, Scheduler
from .script import Batch, clean_batch

logger = logging.getLogger(__name__)

BatchHandler = Callable[[Batch], None]


class QueueState(enum.Enum):
    """Lifecycle of the queue."""
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    QUEUED = "queued"
    PROCESSING = "processing"


class AsyncRequestQueue:
    """
    Serializes batches to a handler, one at a time, in arrival order.

    Batches are processed on one asyncio event loop. submit() may be called
    from other threads (e.g. an audio callback) once that loop is known,
    either passed as `loop` or bound by a first submit made on the loop.

    Usage:
        queue = AsyncRequestQueue(tracker.process_batch)

        queue.submit(["the", "quick", "brown"])
        await queue.flush()
    """

    def __init__(
        self,
        handler: BatchHandler,
        scheduler: Scheduler | None = None,
        debounce_ms: float = 100,
        slice_budget_ms: float = 5.0,
        loop: asyncio.AbstractEventLoop | None = None
    ) -> None:
        """
        Initialize the queue.

        Args:
            handler: Called synchronously with each batch, in order
            scheduler: Source of delays, yields and time (default: asyncio)
            debounce_ms: Quiet period after the last submit before draining
            slice_budget_ms: Processing time per slice before yielding
            loop: Event loop that owns the queue (default: bound on first submit)
        """
        self._handler = handler
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.debounce_delay: float = debounce_ms / 1000
        self.slice_budget: float = slice_budget_ms / 1000
        self._loop: asyncio.AbstractEventLoop | None = loop

        self._pending: deque[Batch] = deque()
        self._generation: int = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._drain_task: asyncio.Task[None] | None = None

        self.is_processing: bool = False
        self.state: QueueState = QueueState.IDLE
        self.yield_count: int = 0

    @property
    def pending(self) -> int:
        """Number of batches waiting to be processed."""
        return len(self._pending)

    @property
    def generation(self) -> int:
        """Current generation; bumped by every reset."""
        return self._generation

    def submit(self, words: Iterable[str]) -> bool:
        """
        Queue a batch and restart the debounce timer.

        Args:
            words: Spoken words of one finalized recognition result

        Returns:
            True if the batch was queued, False if it was empty or there is
            no event loop to hand it to

        Called off the loop's thread, the batch is handed over with
        call_soon_threadsafe and appears in `pending` once the loop runs.
        """
        batch = clean_batch(words)
        if not batch:
            logger.debug("Ignoring empty batch")
            return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None and (self._loop is None or self._loop is running):
            self._loop = running
            self._enqueue(batch)
        elif self._loop is not None:
            self._loop.call_soon_threadsafe(self._enqueue, batch)
        else:
            logger.error("Dropping batch %r: submitted outside an event loop "
                         "and no loop is bound to the queue", batch)
            return False
        return True

    def _enqueue(self, batch: Batch) -> None:
        self._pending.append(batch)
        self._restart_debounce()
        if not self.is_processing:
            self.state = QueueState.DEBOUNCING

    def reset(self) -> None:
        """Discard queued and in-flight work."""
        self._generation += 1
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None
        dropped = len(self._pending)
        self._pending.clear()
        self._drain_task = None
        self.is_processing = False
        self.state = QueueState.IDLE
        logger.debug("Request queue reset (generation %d, dropped %d batches)",
                     self._generation, dropped)

    async def flush(self) -> None:
        """Drain immediately, skipping any remaining debounce delay."""
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None
        self._start_drain()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until no drain is running."""
        while self._drain_task is not None:
            await self._drain_task

    def _restart_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
        loop = asyncio.get_running_loop()
        self._debounce_task = loop.create_task(self._debounce(self._generation))

    async def _debounce(self, generation: int) -> None:
        await self._scheduler.after(self.debounce_delay)
        if generation != self._generation:
            return
        self._debounce_task = None
        self._start_drain()

    def _start_drain(self) -> None:
        if self.is_processing or not self._pending:
            if not self.is_processing:
                self.state = QueueState.IDLE
            return
        self.is_processing = True
        self.state = QueueState.QUEUED
        loop = asyncio.get_running_loop()
        self._drain_task = loop.create_task(self._drain(self._generation))

    async def _drain(self, generation: int) -> None:
        self.state = QueueState.PROCESSING
        logger.debug("Draining %d batches", len(self._pending))
        slice_time = 0.0

        try:
            while self._pending:
                if slice_time > self.slice_budget:
                    self.yield_count += 1
                    await self._scheduler.yield_now()
                    if generation != self._generation:
                        logger.debug("Abandoning drain from generation %d", generation)
                        return
                    slice_time = 0.0

                batch = self._pending.popleft()
                start = self._scheduler.now()
                try:
                    self._handler(batch)
                except Exception:  # pylint: disable=broad-exception-caught
                    logger.exception("Error processing batch %r", batch)
                slice_time += self._scheduler.now() - start

                # The handler may have reset us
                if generation != self._generation:
                    return
        finally:
            if generation == self._generation:
                self.is_processing = False
                self._drain_task = None
                self.state = (QueueState.DEBOUNCING if self._debounce_task is not None
                              else QueueState.IDLE)
