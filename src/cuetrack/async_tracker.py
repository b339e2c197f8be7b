# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Non-blocking front end for ScriptTracker.

Batches from the speech source are queued and matched on the event loop in
small slices, and accepted matches are pushed to listeners. Listeners are
plain callables; a misbehaving listener is logged and skipped without
disturbing the drain or the cursor.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from . import debug_log
from .acceptance import MatchUpdate
from .config import DEFAULT_PRECISION, Config, TrackingSettings, get_tracking_settings
from .profiling import PerformanceMonitor
from .request_queue import AsyncRequestQueue
from .scheduler import Scheduler
from .script import Batch, split_transcript
from .search import SegmentSearchEngine
from .tracker import ScriptSource, ScriptTracker

logger = logging.getLogger(__name__)

MatchListener = Callable[[MatchUpdate], None]


class AsyncTracker:
    """
    Queue-based wrapper around ScriptTracker for use inside an asyncio loop.

    Usage:
        tracker = AsyncTracker(script_text)
        tracker.add_listener(display.show_position)

        # From the speech source callback
        tracker.submit_transcription(final_text)
    """

    def __init__(
        self,
        script: ScriptSource,
        precision: int = DEFAULT_PRECISION,
        debounce_ms: float = 100,
        slice_budget_ms: float = 5.0,
        slow_search_ms: float = 20.0,
        scheduler: Scheduler | None = None,
        loop: asyncio.AbstractEventLoop | None = None
    ) -> None:
        """
        Initialize the async tracker.

        Args:
            script: A Script, Markdown script text, or a sequence of words
            precision: Matching precision (clamped to 50-95)
            debounce_ms: Quiet period before queued batches are processed
            slice_budget_ms: Processing time per slice before yielding
            slow_search_ms: Searches slower than this are logged as warnings
            scheduler: Scheduler for delays and yields (default: asyncio)
            loop: Event loop that processes batches; needed before the first
                submit if submits come from another thread
        """
        engine = SegmentSearchEngine(
            monitor=PerformanceMonitor(slow_search_ms=slow_search_ms))
        self.tracker: ScriptTracker = ScriptTracker(
            script, precision=precision, engine=engine)
        self.queue: AsyncRequestQueue = AsyncRequestQueue(
            self._handle_batch,
            scheduler=scheduler,
            debounce_ms=debounce_ms,
            slice_budget_ms=slice_budget_ms,
            loop=loop
        )
        self._listeners: list[MatchListener] = []
        self.latest_update: MatchUpdate | None = None

    @classmethod
    def from_settings(
        cls,
        script: ScriptSource,
        settings: TrackingSettings,
        scheduler: Scheduler | None = None
    ) -> 'AsyncTracker':
        """Create a tracker from the tracking section of the config."""
        return cls(
            script,
            precision=settings["precision"],
            debounce_ms=settings["debounce_ms"],
            slice_budget_ms=settings["slice_budget_ms"],
            slow_search_ms=settings["slow_search_ms"],
            scheduler=scheduler
        )

    @classmethod
    def from_config(
        cls,
        script: ScriptSource,
        config: Config,
        scheduler: Scheduler | None = None
    ) -> 'AsyncTracker':
        """Create a tracker from a loaded config, enabling the debug log if set."""
        if config.get("debug_log"):
            debug_log.enable()
            debug_log.clear_log()
        return cls.from_settings(script, get_tracking_settings(config), scheduler)

    def add_listener(self, listener: MatchListener) -> None:
        """Register a callable to receive every accepted MatchUpdate."""
        self._listeners.append(listener)

    def remove_listener(self, listener: MatchListener) -> None:
        """Unregister a listener; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def submit(self, words: Iterable[str]) -> bool:
        """
        Queue a batch of spoken words (non-blocking).

        Safe to call from a speech-source thread when the tracker was given
        its event loop; listeners are still called on the loop.

        Returns:
            True if the batch was queued, False if it was empty
        """
        return self.queue.submit(words)

    def submit_transcription(self, transcription: str) -> bool:
        """Queue a finalized transcript, split into words."""
        return self.queue.submit(split_transcript(transcription))

    async def flush(self) -> None:
        """Process everything queued so far without waiting for the debounce."""
        await self.queue.flush()

    def reset(self) -> None:
        """Discard pending batches and return to the start of the script."""
        self.queue.reset()
        self.tracker.reset()
        self.latest_update = None

    def jump_to(self, word_index: int) -> None:
        """Discard pending batches and continue tracking from a word index."""
        self.queue.reset()
        self.tracker.jump_to(word_index)
        self.latest_update = None

    def load_script(self, script: ScriptSource) -> None:
        """Discard pending batches and start a new session on a new script."""
        self.queue.reset()
        self.tracker.load_script(script)
        self.latest_update = None

    def set_precision(self, precision: int) -> None:
        """Change matching precision; applies from the next batch."""
        self.tracker.precision = precision

    @property
    def precision(self) -> int:
        """Matching precision (50-95)."""
        return self.tracker.precision

    @property
    def current_position(self) -> int:
        """Index of the next word to be read."""
        return self.tracker.current_position

    def _handle_batch(self, batch: Batch) -> None:
        update = self.tracker.process_batch(batch)
        if update is None:
            return
        self.latest_update = update
        self._emit(update)

    def _emit(self, update: MatchUpdate) -> None:
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Match listener %r failed", listener)
