from __future__ import annotations

import threading
from typing import Callable, Optional

from gendelbrot.rendering.events import ProgressEvent


class ProgressTracker:
    """
    Running total of completed work against a known denominator (rows on
    the CPU path, pixels on the GPU path).

    Increments may arrive in any order and from any thread; each one is
    counted exactly once. The callback sees every update, so the same
    percentage may be displayed more than once.
    """

    def __init__(self, total: int, on_progress: Optional[Callable[[ProgressEvent], None]] = None) -> None:
        if total <= 0:
            raise ValueError(f"Progress total must be positive, got {total}")
        self.total = int(total)
        self.on_progress = on_progress
        self._completed = 0
        self._lock = threading.Lock()

    def add(self, increment: int = 1) -> ProgressEvent:
        if increment < 0:
            raise ValueError(f"Progress increment must be non-negative, got {increment}")
        with self._lock:
            self._completed += int(increment)
            evt = self._event()
        if self.on_progress is not None:
            self.on_progress(evt)
        return evt

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def percent(self) -> float:
        return self._event().percent

    @property
    def done(self) -> bool:
        return self._completed >= self.total

    def render(self) -> str:
        return f"Progress: {round(self.percent)}%"

    def _event(self) -> ProgressEvent:
        shown = min(self._completed, self.total)
        return ProgressEvent(completed=self._completed, total=self.total,
                             percent=100.0 * shown / self.total)
