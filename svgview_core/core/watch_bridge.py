from __future__ import annotations

import logging
import os
from pathlib import Path
import sys
import threading
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from svgview_core.errors import EventLoopClosedError, WatchError

from .config import WatchEventPolicy
from .events import FileChanged

LOGGER = logging.getLogger(__name__)


def resolve_watch_event_type(policy: WatchEventPolicy, platform: str | None = None) -> str:
    """Map a watch policy to the watchdog event type counted as a completed write."""
    if policy == "close_write":
        return EVENT_TYPE_CLOSED
    if policy == "modified":
        return EVENT_TYPE_MODIFIED
    if policy != "auto":
        raise ValueError(f"unsupported watch policy: {policy}")
    # Close events come from inotify only.
    platform = sys.platform if platform is None else platform
    return EVENT_TYPE_CLOSED if platform.startswith("linux") else EVENT_TYPE_MODIFIED


class _WatchedFileHandler(FileSystemEventHandler):
    def __init__(
        self,
        path: Path,
        accepted_event_type: str,
        on_write: Callable[[], None],
        on_lost: Callable[[str], None],
    ) -> None:
        super().__init__()
        self._path = path
        self._directory = path.parent
        self._accepted_event_type = accepted_event_type
        self._on_write = on_write
        self._on_lost = on_lost

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            if event.event_type == EVENT_TYPE_DELETED and _event_path(event.src_path) == self._directory:
                self._on_lost(f"watched directory {self._directory} was removed")
            return
        if event.event_type != self._accepted_event_type:
            LOGGER.debug("ignoring %s event for %s", event.event_type, event.src_path)
            return
        if _event_path(event.src_path) != self._path:
            return
        self._on_write()


class FileWatchBridge:
    """Forwards completed writes of one file into the UI event queue.

    The watchdog observer thread never touches viewer state; it only posts a
    zero-payload `FileChanged`. With `debounce_s > 0` the first write opens a
    fixed window and every write inside it collapses into one signal posted
    when the window closes.
    """

    def __init__(
        self,
        path: Path,
        post: Callable[[FileChanged], None],
        *,
        events: WatchEventPolicy = "auto",
        debounce_s: float = 0.0,
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        if debounce_s < 0:
            raise ValueError("debounce_s must be >= 0")
        self._path = Path(path).resolve()
        self._post = post
        self._event_type = resolve_watch_event_type(events)
        self._debounce_s = debounce_s
        self._observer_factory = observer_factory
        self._observer = None
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._running = False
        self._degraded = False
        self._signals_posted = 0
        self._signals_coalesced = 0
        self._handler = _WatchedFileHandler(
            path=self._path,
            accepted_event_type=self._event_type,
            on_write=self._on_write,
            on_lost=self._degrade,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def event_type(self) -> str:
        return self._event_type

    @property
    def is_running(self) -> bool:
        return self._running and not self._degraded

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def signals_posted(self) -> int:
        return self._signals_posted

    @property
    def signals_coalesced(self) -> int:
        return self._signals_coalesced

    @property
    def handler(self) -> FileSystemEventHandler:
        return self._handler

    def start(self) -> None:
        if self._running:
            return
        observer = self._observer_factory()
        try:
            observer.schedule(self._handler, str(self._path.parent), recursive=False)
            observer.start()
        except OSError as exc:
            raise WatchError(f"could not start filesystem watcher for {self._path}: {exc}") from exc
        self._observer = observer
        self._running = True
        LOGGER.debug("watching %s for %s events", self._path, self._event_type)

    def stop(self) -> None:
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._release_observer()

    def check_alive(self) -> bool:
        """Report observer health; a degraded bridge has its observer shut down here."""
        if self._running and not self._degraded:
            observer = self._observer
            if observer is not None and not observer.is_alive():
                self._degrade("filesystem observer thread exited")
        if self._degraded and self._observer is not None:
            self._release_observer()
        return self.is_running

    def __enter__(self) -> "FileWatchBridge":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _on_write(self) -> None:
        if not self.is_running:
            return
        if self._debounce_s <= 0:
            self._emit()
            return
        with self._lock:
            if self._timer is not None:
                self._signals_coalesced += 1
                return
            timer = threading.Timer(self._debounce_s, self._flush)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _flush(self) -> None:
        with self._lock:
            self._timer = None
            if not self._running:
                return
        self._emit()

    def _emit(self) -> None:
        try:
            self._post(FileChanged())
        except EventLoopClosedError:
            LOGGER.warning("UI event loop has shut down; dropped change notification for %s", self._path)
            return
        self._signals_posted += 1

    def _release_observer(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive() and observer is not threading.current_thread():
            observer.join(timeout=1.0)

    def _degrade(self, reason: str) -> None:
        if self._degraded:
            return
        self._degraded = True
        LOGGER.warning("file watch stopped (%s); further edits to %s will not reload", reason, self._path)


def _event_path(src_path: str | bytes) -> Path:
    return Path(os.fsdecode(src_path))
