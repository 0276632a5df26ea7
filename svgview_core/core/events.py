from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import threading
from typing import TypeAlias

from svgview_core.errors import EventLoopClosedError


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class RedrawRequested:
    pass


@dataclass(frozen=True)
class FileChanged:
    pass


@dataclass(frozen=True)
class Quit:
    reason: str = "escape"


ViewerEvent: TypeAlias = Resize | RedrawRequested | FileChanged | Quit


class EventQueue:
    """Thread-safe FIFO drained by the UI loop.

    Targets post input from the UI thread; the file watcher posts from its own
    thread. Once closed, `post` raises `EventLoopClosedError`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cv = threading.Condition(self._lock)
        self._events: deque[ViewerEvent] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def post(self, event: ViewerEvent) -> None:
        with self._cv:
            if self._closed:
                raise EventLoopClosedError(f"event loop closed; cannot post {type(event).__name__}")
            self._events.append(event)
            self._cv.notify_all()

    def wait(self, timeout: float | None = None) -> ViewerEvent | None:
        """Pop the oldest event; `timeout=None` polls without blocking."""
        with self._cv:
            if not self._events:
                if timeout is None or self._closed:
                    return None
                self._cv.wait(timeout=timeout)
            if not self._events:
                return None
            return self._events.popleft()

    def pending_count(self) -> int:
        with self._lock:
            return len(self._events)

    def close(self) -> None:
        with self._cv:
            self._closed = True
            self._events.clear()
            self._cv.notify_all()
