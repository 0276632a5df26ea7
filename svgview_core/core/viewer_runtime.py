from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from svgview_core.errors import PresentError
from svgview_core.render.document import DocumentSource, FileSource, load_document
from svgview_core.render.raster import Rasterizer
from svgview_core.targets.base import DisplayFrame, RenderTarget

from .app_state import ViewerState, Viewport
from .config import ViewerConfig
from .events import EventQueue, FileChanged, Quit, RedrawRequested, Resize, ViewerEvent

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewerRunResult:
    ticks_run: int
    frames_presented: int
    reloads: int
    resizes: int
    stopped_by_quit: bool
    stopped_by_target_close: bool
    stopped_by_present_error: bool


class ViewerRuntime:
    """Single-threaded presentation loop.

    Waits for the next event, applies it to `ViewerState` to completion, and
    presents the surface when a redraw is pending. Redraw requests coalesce:
    at most one is queued at a time.
    """

    def __init__(
        self,
        target: RenderTarget,
        events: EventQueue,
        config: ViewerConfig | None = None,
        *,
        rasterizer: Rasterizer | None = None,
        observer_factory: Callable[[], object] | None = None,
    ) -> None:
        self._target = target
        self._events = events
        self._config = config or ViewerConfig()
        self._rasterizer = rasterizer
        self._observer_factory = observer_factory
        self._state: Optional[ViewerState] = None
        self._redraw_pending = False
        self._frames_presented = 0
        self._reloads = 0
        self._resizes = 0
        self._stopped_by_quit = False
        self._stopped_by_target_close = False
        self._stopped_by_present_error = False

    @property
    def state(self) -> Optional[ViewerState]:
        return self._state

    def run(self, source: DocumentSource, max_ticks: int | None = None) -> ViewerRunResult:
        if max_ticks is not None and max_ticks <= 0:
            raise ValueError("max_ticks must be > 0")
        config = self._config
        document = load_document(source, dpi=config.dpi, unsafe=config.unsafe)
        LOGGER.info(
            "loaded SVG: intrinsic size %sx%s, viewBox %s",
            document.width,
            document.height,
            document.viewbox,
        )
        ticks = 0
        self._target.start()
        try:
            width, height = self._target.viewport_size()
            with ViewerState(
                source,
                document,
                Viewport(width=width, height=height),
                rasterizer=self._rasterizer,
                reload_failure=config.reload_failure,
            ) as state:
                self._state = state
                if isinstance(source, FileSource):
                    state.start_watch(
                        self._events.post,
                        events=config.watch_events,
                        debounce_s=config.debounce_s,
                        observer_factory=self._observer_factory,
                    )
                self.request_redraw()
                while max_ticks is None or ticks < max_ticks:
                    ticks += 1
                    self._target.pump_events()
                    if self._target.should_close():
                        self._stopped_by_target_close = True
                        break
                    if state.watch is not None:
                        state.watch.check_alive()
                    event = self._events.wait(timeout=config.idle_poll_s)
                    if event is None:
                        continue
                    if not self.handle_event(event):
                        break
        finally:
            self._events.close()
            self._target.stop()
        return ViewerRunResult(
            ticks_run=ticks,
            frames_presented=self._frames_presented,
            reloads=self._reloads,
            resizes=self._resizes,
            stopped_by_quit=self._stopped_by_quit,
            stopped_by_target_close=self._stopped_by_target_close,
            stopped_by_present_error=self._stopped_by_present_error,
        )

    def request_redraw(self) -> None:
        if self._redraw_pending:
            return
        self._redraw_pending = True
        self._events.post(RedrawRequested())

    def handle_event(self, event: ViewerEvent) -> bool:
        """Apply one event; False ends the loop."""
        state = self._require_state()
        if isinstance(event, Resize):
            if state.resize(event.width, event.height):
                self._resizes += 1
                self.request_redraw()
            return True
        if isinstance(event, FileChanged):
            if state.handle_file_change():
                self._reloads += 1
                self.request_redraw()
            return True
        if isinstance(event, RedrawRequested):
            self._redraw_pending = False
            return self._present(state)
        if isinstance(event, Quit):
            LOGGER.info("quit requested (%s)", event.reason)
            self._stopped_by_quit = True
            return False
        raise TypeError(f"unsupported viewer event: {event!r}")

    def _present(self, state: ViewerState) -> bool:
        surface = state.surface
        frame = DisplayFrame(
            revision=state.revision,
            width=surface.width,
            height=surface.height,
            rgba=surface.pixels,
        )
        try:
            self._target.present_frame(frame)
        except PresentError as exc:
            LOGGER.warning("Rendering failed: %s", exc)
            self._stopped_by_present_error = True
            return False
        self._frames_presented += 1
        return True

    def _require_state(self) -> ViewerState:
        if self._state is None:
            raise RuntimeError("viewer runtime has not been started")
        return self._state
