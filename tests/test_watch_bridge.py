from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import time
import unittest

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_MODIFIED,
    DirDeletedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from svgview_core.core.events import EventQueue, FileChanged
from svgview_core.core.watch_bridge import FileWatchBridge, resolve_watch_event_type
from svgview_core.errors import WatchError


class _FakeObserver:
    def __init__(self) -> None:
        self.scheduled: list[tuple[object, str, bool]] = []
        self.started = False
        self.stopped = False
        self.alive = False

    def schedule(self, handler, path: str, recursive: bool = False) -> None:
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True
        self.alive = True

    def stop(self) -> None:
        self.stopped = True
        self.alive = False

    def join(self, timeout: float | None = None) -> None:
        return

    def is_alive(self) -> bool:
        return self.alive


class _UnstartableObserver(_FakeObserver):
    def schedule(self, handler, path: str, recursive: bool = False) -> None:
        raise FileNotFoundError(path)


class ResolveWatchEventTypeTests(unittest.TestCase):
    def test_explicit_policies(self) -> None:
        self.assertEqual(resolve_watch_event_type("close_write"), EVENT_TYPE_CLOSED)
        self.assertEqual(resolve_watch_event_type("modified"), EVENT_TYPE_MODIFIED)

    def test_auto_prefers_close_write_on_linux_only(self) -> None:
        self.assertEqual(resolve_watch_event_type("auto", platform="linux"), EVENT_TYPE_CLOSED)
        self.assertEqual(resolve_watch_event_type("auto", platform="darwin"), EVENT_TYPE_MODIFIED)
        self.assertEqual(resolve_watch_event_type("auto", platform="win32"), EVENT_TYPE_MODIFIED)

    def test_unknown_policy_rejected(self) -> None:
        with self.assertRaises(ValueError):
            resolve_watch_event_type("inotify")  # type: ignore[arg-type]


class FileWatchBridgeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name).resolve() / "drawing.svg"
        self.path.write_text("<svg xmlns='http://www.w3.org/2000/svg'/>")
        self.queue = EventQueue()
        self.observer = _FakeObserver()

    def _bridge(self, **kwargs) -> FileWatchBridge:
        kwargs.setdefault("events", "close_write")
        bridge = FileWatchBridge(self.path, self.queue.post, observer_factory=lambda: self.observer, **kwargs)
        bridge.start()
        self.addCleanup(bridge.stop)
        return bridge

    def _drain(self) -> list[object]:
        out = []
        while True:
            event = self.queue.wait()
            if event is None:
                return out
            out.append(event)

    def test_schedules_parent_directory_non_recursively(self) -> None:
        bridge = self._bridge()

        self.assertTrue(bridge.is_running)
        self.assertEqual(len(self.observer.scheduled), 1)
        handler, path, recursive = self.observer.scheduled[0]
        self.assertIs(handler, bridge.handler)
        self.assertEqual(Path(path), self.path.parent)
        self.assertFalse(recursive)

    def test_close_write_posts_exactly_one_signal(self) -> None:
        bridge = self._bridge()

        bridge.handler.dispatch(FileClosedEvent(str(self.path)))

        self.assertEqual(self._drain(), [FileChanged()])
        self.assertEqual(bridge.signals_posted, 1)

    def test_each_write_posts_its_own_signal_without_debounce(self) -> None:
        bridge = self._bridge()

        bridge.handler.dispatch(FileClosedEvent(str(self.path)))
        bridge.handler.dispatch(FileClosedEvent(str(self.path)))

        self.assertEqual(self._drain(), [FileChanged(), FileChanged()])

    def test_non_qualifying_events_are_ignored(self) -> None:
        bridge = self._bridge()
        other = self.path.with_name("other.svg")

        bridge.handler.dispatch(FileModifiedEvent(str(self.path)))
        bridge.handler.dispatch(FileCreatedEvent(str(self.path)))
        bridge.handler.dispatch(FileDeletedEvent(str(self.path)))
        bridge.handler.dispatch(FileMovedEvent(str(other), str(self.path)))
        bridge.handler.dispatch(FileClosedEvent(str(other)))

        self.assertEqual(self._drain(), [])
        self.assertEqual(bridge.signals_posted, 0)

    def test_modified_policy_accepts_modified_events(self) -> None:
        bridge = self._bridge(events="modified")

        bridge.handler.dispatch(FileModifiedEvent(str(self.path)))
        bridge.handler.dispatch(FileClosedEvent(str(self.path)))

        self.assertEqual(self._drain(), [FileChanged()])

    def test_closed_event_loop_is_logged_not_raised(self) -> None:
        bridge = self._bridge()
        self.queue.close()

        with self.assertLogs("svgview_core.core.watch_bridge", level="WARNING") as logs:
            bridge.handler.dispatch(FileClosedEvent(str(self.path)))

        self.assertEqual(bridge.signals_posted, 0)
        self.assertIn("dropped change notification", logs.output[0])

    def test_removed_directory_degrades_without_raising(self) -> None:
        bridge = self._bridge()

        with self.assertLogs("svgview_core.core.watch_bridge", level="WARNING"):
            bridge.handler.dispatch(DirDeletedEvent(str(self.path.parent)))
        bridge.handler.dispatch(FileClosedEvent(str(self.path)))

        self.assertTrue(bridge.degraded)
        self.assertFalse(bridge.is_running)
        self.assertEqual(self._drain(), [])

    def test_health_check_shuts_down_observer_after_directory_loss(self) -> None:
        bridge = self._bridge()
        with self.assertLogs("svgview_core.core.watch_bridge", level="WARNING"):
            bridge.handler.dispatch(DirDeletedEvent(str(self.path.parent)))
        self.assertFalse(self.observer.stopped)

        self.assertFalse(bridge.check_alive())

        self.assertTrue(self.observer.stopped)
        self.assertFalse(bridge.check_alive())
        bridge.stop()

    def test_dead_observer_degrades_on_health_check(self) -> None:
        bridge = self._bridge()
        self.assertTrue(bridge.check_alive())

        self.observer.alive = False
        with self.assertLogs("svgview_core.core.watch_bridge", level="WARNING"):
            self.assertFalse(bridge.check_alive())
        self.assertTrue(bridge.degraded)
        self.assertTrue(self.observer.stopped)

    def test_start_failure_raises_watch_error(self) -> None:
        bridge = FileWatchBridge(self.path, self.queue.post, observer_factory=_UnstartableObserver)
        with self.assertRaises(WatchError):
            bridge.start()
        self.assertFalse(bridge.is_running)

    def test_stop_tears_down_observer_and_is_idempotent(self) -> None:
        bridge = self._bridge()

        bridge.stop()
        bridge.stop()

        self.assertTrue(self.observer.stopped)
        self.assertFalse(bridge.is_running)
        bridge.handler.dispatch(FileClosedEvent(str(self.path)))
        self.assertEqual(self._drain(), [])

    def test_debounce_coalesces_burst_into_one_signal(self) -> None:
        bridge = self._bridge(debounce_s=0.05)

        for _ in range(3):
            bridge.handler.dispatch(FileClosedEvent(str(self.path)))
        self.assertEqual(self._drain(), [])

        event = self.queue.wait(timeout=2.0)
        self.assertEqual(event, FileChanged())
        time.sleep(0.1)
        self.assertEqual(self._drain(), [])
        self.assertEqual(bridge.signals_posted, 1)
        self.assertEqual(bridge.signals_coalesced, 2)

    def test_stop_cancels_pending_debounce(self) -> None:
        bridge = self._bridge(debounce_s=0.05)

        bridge.handler.dispatch(FileClosedEvent(str(self.path)))
        bridge.stop()
        time.sleep(0.15)

        self.assertEqual(self._drain(), [])
        self.assertEqual(bridge.signals_posted, 0)

    def test_negative_debounce_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FileWatchBridge(self.path, self.queue.post, debounce_s=-1.0)


@unittest.skipUnless(sys.platform.startswith("linux"), "close-after-write events need inotify")
class InotifyWatchBridgeTests(unittest.TestCase):
    def test_real_write_reaches_event_queue(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "drawing.svg"
            path.write_text("<svg xmlns='http://www.w3.org/2000/svg'/>")
            queue = EventQueue()
            bridge = FileWatchBridge(path, queue.post, events="close_write")
            try:
                bridge.start()
            except WatchError as exc:
                self.skipTest(f"inotify unavailable: {exc}")
            try:
                time.sleep(0.1)
                with path.open("w") as fh:
                    fh.write("<svg xmlns='http://www.w3.org/2000/svg' width='1' height='1'/>")
                event = queue.wait(timeout=5.0)
            finally:
                bridge.stop()

        self.assertEqual(event, FileChanged())


if __name__ == "__main__":
    unittest.main()
