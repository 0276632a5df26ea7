from __future__ import annotations

from collections import deque
from typing import Iterable, Sequence

from svgview_core.core.events import EventQueue, ViewerEvent

from .base import DisplayFrame, RenderTarget


class HeadlessTarget(RenderTarget):
    """Windowless target: replays scripted input bursts, one per pump, and keeps presented frames."""

    def __init__(
        self,
        events: EventQueue,
        *,
        width: int,
        height: int,
        script: Iterable[Sequence[ViewerEvent]] = (),
        keep_frames: bool = True,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self._events = events
        self._size = (width, height)
        self._script: deque[Sequence[ViewerEvent]] = deque(script)
        self._keep_frames = keep_frames
        self.frames: list[DisplayFrame] = []
        self.frames_presented = 0
        self.started = False
        self.pumped = 0

    def start(self) -> None:
        self.started = True

    def viewport_size(self) -> tuple[int, int]:
        return self._size

    def present_frame(self, frame: DisplayFrame) -> None:
        if not self.started:
            raise RuntimeError("headless target not started")
        self.frames_presented += 1
        if self._keep_frames:
            self.frames.append(DisplayFrame(frame.revision, frame.width, frame.height, frame.rgba.clone()))

    def stop(self) -> None:
        self.started = False

    def pump_events(self) -> None:
        self.pumped += 1
        if not self._script:
            return
        for event in self._script.popleft():
            self._events.post(event)
