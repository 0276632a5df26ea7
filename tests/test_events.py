from __future__ import annotations

import threading
import time
import unittest

from svgview_core.core.events import EventQueue, FileChanged, Quit, RedrawRequested, Resize
from svgview_core.errors import EventLoopClosedError


class EventQueueTests(unittest.TestCase):
    def test_events_are_delivered_in_post_order(self) -> None:
        queue = EventQueue()
        queue.post(Resize(10, 20))
        queue.post(FileChanged())
        queue.post(Quit())

        self.assertEqual(queue.pending_count(), 3)
        self.assertEqual(queue.wait(), Resize(10, 20))
        self.assertEqual(queue.wait(), FileChanged())
        self.assertEqual(queue.wait(), Quit())
        self.assertIsNone(queue.wait())

    def test_wait_times_out_when_empty(self) -> None:
        queue = EventQueue()
        start = time.monotonic()
        self.assertIsNone(queue.wait(timeout=0.02))
        self.assertGreaterEqual(time.monotonic() - start, 0.01)

    def test_post_from_background_thread_wakes_waiter(self) -> None:
        queue = EventQueue()
        poster = threading.Timer(0.02, queue.post, args=(FileChanged(),))
        poster.start()
        try:
            event = queue.wait(timeout=2.0)
        finally:
            poster.cancel()
        self.assertEqual(event, FileChanged())

    def test_post_after_close_raises(self) -> None:
        queue = EventQueue()
        queue.post(RedrawRequested())
        queue.close()

        self.assertTrue(queue.closed)
        self.assertEqual(queue.pending_count(), 0)
        with self.assertRaises(EventLoopClosedError):
            queue.post(FileChanged())

    def test_wait_on_closed_queue_returns_immediately(self) -> None:
        queue = EventQueue()
        queue.close()
        start = time.monotonic()
        self.assertIsNone(queue.wait(timeout=5.0))
        self.assertLess(time.monotonic() - start, 1.0)


if __name__ == "__main__":
    unittest.main()
