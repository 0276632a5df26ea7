from __future__ import annotations


class ViewerError(RuntimeError):
    """Base error for svgview failures."""


class DocumentReadError(ViewerError):
    """The SVG source could not be opened or read."""


class DocumentParseError(ViewerError):
    """The SVG bytes are not a well-formed SVG document."""


class AllocationError(ViewerError):
    """The pixel buffer could not be sized."""


class RasterizeError(ViewerError):
    """The rasterizer failed to paint the document."""


class WatchError(ViewerError):
    """The file watcher could not be started."""


class PresentError(ViewerError):
    """The target failed to put a frame on screen."""


class EventLoopClosedError(ViewerError):
    """An event was posted after the UI loop shut down."""
