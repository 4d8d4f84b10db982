"""Thread-safe event queue feeding the pipeline actor."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
import threading
import time
from typing import Any, Deque, Iterable

from core.logging import logger as LOGGER


class PipelineEventKind(str, Enum):
    """Kinds of work routed through the pipeline actor."""

    DETECTION = "detection"
    COMMAND = "command"
    STOP = "stop"


@dataclass(frozen=True)
class PipelineEvent:
    """Structured payload for one unit of pipeline work."""

    kind: PipelineEventKind
    payload: Any = None
    metadata: dict[str, object] = field(default_factory=dict)
    created_at: float = field(default_factory=time.monotonic)


class PipelineEventQueue:
    """FIFO queue drained by a single consumer thread."""

    def __init__(self, maxlen: int = 64) -> None:
        self._maxlen = maxlen
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._queue: Deque[PipelineEvent] = deque()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def publish(self, event: PipelineEvent) -> None:
        with self._cond:
            if len(self._queue) >= self._maxlen:
                dropped = self._oldest_droppable_index()
                if dropped is not None:
                    removed = self._queue[dropped]
                    del self._queue[dropped]
                    self._dropped += 1
                    LOGGER.warning(
                        "[PIPELINE] Event queue full; dropping oldest %s event.",
                        removed.kind.value,
                    )
            self._queue.append(event)
            self._cond.notify()

    def get_next(self, timeout: float | None = None) -> PipelineEvent | None:
        with self._cond:
            if not self._queue:
                self._cond.wait(timeout=timeout)
            if not self._queue:
                return None
            return self._queue.popleft()

    def drain(self) -> Iterable[PipelineEvent]:
        with self._cond:
            events = list(self._queue)
            self._queue.clear()
            return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def _oldest_droppable_index(self) -> int | None:
        # User commands and stop requests are never discarded.
        for index, event in enumerate(self._queue):
            if event.kind is PipelineEventKind.DETECTION:
                return index
        return None
