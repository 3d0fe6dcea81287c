from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

logger = logging.getLogger("voice_audit.audio.scheduler")


class PlaybackHandle(Protocol):
    end_time: float

    def stop(self) -> None:
        ...


class PlaybackContext(Protocol):
    sample_rate: int

    @property
    def current_time(self) -> float:
        ...

    def start(self, samples: np.ndarray, when: float) -> PlaybackHandle:
        ...

    def close(self) -> None:
        ...


class PlaybackScheduler:
    """Gap-free, overlap-free concatenation of streamed audio chunks.

    Each buffer starts at max(now, cursor); the cursor then moves forward by
    the buffer duration.
    """

    def __init__(self, context: PlaybackContext):
        self.context = context
        self.cursor = 0.0
        self._handles: list[PlaybackHandle] = []

    @property
    def scheduled_count(self) -> int:
        self._prune()
        return len(self._handles)

    def schedule(self, samples: np.ndarray, sample_rate: int | None = None) -> float:
        rate = int(sample_rate or self.context.sample_rate)
        duration = len(samples) / float(rate)
        start_at = max(self.cursor, self.context.current_time)
        handle = self.context.start(samples, start_at)
        self._handles.append(handle)
        self.cursor = start_at + duration
        self._prune()
        return start_at

    def remaining(self) -> float:
        return max(0.0, self.cursor - self.context.current_time)

    def interrupt(self) -> int:
        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                handle.stop()
            except Exception as exc:
                logger.debug("Playback handle stop failed: %s", exc)
        self.cursor = self.context.current_time
        return len(handles)

    def clear(self) -> None:
        self.interrupt()
        self.cursor = 0.0

    def _prune(self) -> None:
        now = self.context.current_time
        self._handles = [handle for handle in self._handles if handle.end_time > now]
