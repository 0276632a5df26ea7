from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from svgview_core.errors import DocumentParseError, DocumentReadError
from svgview_core.render.document import Document, DocumentSource, FileSource, reload_document
from svgview_core.render.raster import CairoSvgRasterizer, RasterSurface, Rasterizer

from .config import ReloadFailurePolicy, WatchEventPolicy
from .events import FileChanged
from .watch_bridge import FileWatchBridge

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


class ViewerState:
    """Document, viewport and raster surface owned by the UI thread.

    Every transition finishes with `surface.size == viewport.size`. The watch
    bridge, when present, only ever posts into the event queue; it never
    reaches into this object.
    """

    def __init__(
        self,
        source: DocumentSource,
        document: Document,
        viewport: Viewport,
        *,
        rasterizer: Rasterizer | None = None,
        reload_failure: ReloadFailurePolicy = "keep",
    ) -> None:
        if reload_failure not in ("keep", "abort"):
            raise ValueError(f"unsupported reload_failure: {reload_failure}")
        self._source = source
        self._document = document
        self._rasterizer = rasterizer or CairoSvgRasterizer()
        self._reload_failure = reload_failure
        self._watch: Optional[FileWatchBridge] = None
        self._revision = 0
        self._surface = RasterSurface.allocate(viewport.width, viewport.height)
        self._viewport = viewport
        self._rasterize()

    @property
    def source(self) -> DocumentSource:
        return self._source

    @property
    def document(self) -> Document:
        return self._document

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def surface(self) -> RasterSurface:
        return self._surface

    @property
    def watch(self) -> Optional[FileWatchBridge]:
        return self._watch

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def is_file_backed(self) -> bool:
        return isinstance(self._source, FileSource)

    def start_watch(
        self,
        post: Callable[[FileChanged], None],
        *,
        events: WatchEventPolicy = "auto",
        debounce_s: float = 0.0,
        observer_factory: Callable[[], object] | None = None,
    ) -> FileWatchBridge:
        if not isinstance(self._source, FileSource):
            raise ValueError("only file-backed documents can be watched")
        if self._watch is not None:
            return self._watch
        kwargs: dict[str, object] = {"events": events, "debounce_s": debounce_s}
        if observer_factory is not None:
            kwargs["observer_factory"] = observer_factory
        bridge = FileWatchBridge(self._source.path, post, **kwargs)  # type: ignore[arg-type]
        bridge.start()
        self._watch = bridge
        return bridge

    def resize(self, width: int, height: int) -> bool:
        if (width, height) == self._viewport.size:
            return False
        self._surface = RasterSurface.allocate(width, height)
        self._viewport = Viewport(width=width, height=height)
        self._rasterize()
        LOGGER.info("resized viewport to %dx%d", width, height)
        return True

    def handle_file_change(self) -> bool:
        source = self._source
        if not isinstance(source, FileSource):
            LOGGER.debug("ignoring file change signal for stdin document")
            return False
        try:
            document = reload_document(source, self._document.options)
        except (DocumentReadError, DocumentParseError) as exc:
            if self._reload_failure == "abort":
                raise
            LOGGER.error("reload of %s failed; keeping last good document: %s", source.path, exc)
            return False
        self._document = document
        self._rasterize()
        LOGGER.info("reloaded %s", source.path)
        return True

    def close(self) -> None:
        watch, self._watch = self._watch, None
        if watch is not None:
            watch.stop()

    def __enter__(self) -> "ViewerState":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _rasterize(self) -> None:
        self._surface.rasterize(self._document, self._rasterizer)
        self._revision += 1
