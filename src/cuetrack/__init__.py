"""
cuetrack - Incremental fuzzy script tracking for teleprompters.

Follows a speaker through a script from batches of transcribed words,
advancing a read-position cursor that never moves backwards.
"""

__version__ = "0.1.0"

from .acceptance import CursorState, MatchAcceptancePolicy, MatchUpdate
from .async_tracker import AsyncTracker
from .profiling import PerformanceMonitor
from .request_queue import AsyncRequestQueue
from .script import Script
from .search import MatchCandidate, SegmentSearchEngine
from .similarity import similarity
from .tracker import ScriptTracker

__all__ = [
    "AsyncRequestQueue",
    "AsyncTracker",
    "CursorState",
    "MatchAcceptancePolicy",
    "MatchCandidate",
    "MatchUpdate",
    "PerformanceMonitor",
    "Script",
    "ScriptTracker",
    "SegmentSearchEngine",
    "similarity",
]
