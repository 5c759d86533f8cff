"""
In-memory publication slot for the latest AnalyticsResult.

Publishing swaps a single reference under a lock, so a reader sees either
the previous result or the new one, never a half-built mix.  Results are
frozen models and are never edited after publication.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional, Protocol

from schemas import AnalyticsResult


class ResultStore(Protocol):
    def get(self) -> Optional[AnalyticsResult]: ...

    def set(self, result: AnalyticsResult) -> None: ...


class MemoryResultStore:
    """Single-slot store with atomic swap semantics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._result: Optional[AnalyticsResult] = None
        self._published_at: Optional[datetime] = None

    def get(self) -> Optional[AnalyticsResult]:
        with self._lock:
            return self._result

    def set(self, result: AnalyticsResult) -> None:
        if not isinstance(result, AnalyticsResult):
            raise TypeError(f"expected AnalyticsResult, got {type(result).__name__}")
        with self._lock:
            self._result = result
            self._published_at = datetime.now()

    @property
    def published_at(self) -> Optional[datetime]:
        with self._lock:
            return self._published_at
