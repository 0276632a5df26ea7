from .document import (
    Document,
    DocumentSource,
    FileSource,
    ParseOptions,
    StdinSource,
    load_document,
    load_from_file,
    load_from_stdin,
    parse_document,
    reload_document,
    source_from_argument,
)
from .raster import CairoSvgRasterizer, RasterSurface, Rasterizer

__all__ = [
    "CairoSvgRasterizer",
    "Document",
    "DocumentSource",
    "FileSource",
    "ParseOptions",
    "RasterSurface",
    "Rasterizer",
    "StdinSource",
    "load_document",
    "load_from_file",
    "load_from_stdin",
    "parse_document",
    "reload_document",
    "source_from_argument",
]
