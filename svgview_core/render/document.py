from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys
from typing import BinaryIO, Optional, TypeAlias
import xml.etree.ElementTree as ET

from svgview_core.errors import DocumentParseError, DocumentReadError


SVG_NAMESPACE = "http://www.w3.org/2000/svg"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"

# Serialize SVG elements without generated ns0:/ns1: prefixes.
ET.register_namespace("", SVG_NAMESPACE)
ET.register_namespace("xlink", XLINK_NAMESPACE)


@dataclass(frozen=True)
class ParseOptions:
    """Parser configuration captured at startup and reused on every reload."""

    resources_url: Optional[str] = None
    dpi: float = 96.0
    unsafe: bool = False


@dataclass(frozen=True)
class FileSource:
    path: Path


@dataclass(frozen=True)
class StdinSource:
    stream: Optional[BinaryIO] = None


DocumentSource: TypeAlias = FileSource | StdinSource


@dataclass(frozen=True)
class Document:
    """Parsed SVG ready for rasterization.

    `markup` is the normalized document: the root carries
    `preserveAspectRatio="none"` so renderers stretch it to the target box,
    and a `viewBox` derived from the intrinsic size when the source had none.
    `width`, `height` and `viewbox` record the root geometry as loaded; they
    are reported when a document is loaded and are not used for sizing.
    """

    markup: bytes
    width: Optional[float]
    height: Optional[float]
    viewbox: Optional[tuple[float, float, float, float]]
    options: ParseOptions


def source_from_argument(arg: Optional[str]) -> DocumentSource:
    if arg is None or arg == "-":
        return StdinSource()
    return FileSource(path=Path(arg).expanduser().resolve())


def load_document(source: DocumentSource, *, dpi: float = 96.0, unsafe: bool = False) -> Document:
    if isinstance(source, FileSource):
        return load_from_file(source.path, dpi=dpi, unsafe=unsafe)
    return load_from_stdin(source.stream, dpi=dpi, unsafe=unsafe)


def load_from_file(path: Path, *, dpi: float = 96.0, unsafe: bool = False) -> Document:
    path = Path(path).resolve()
    options = ParseOptions(resources_url=path.as_uri(), dpi=dpi, unsafe=unsafe)
    return parse_document(_read_file(path), options)


def load_from_stdin(
    stream: Optional[BinaryIO] = None, *, dpi: float = 96.0, unsafe: bool = False
) -> Document:
    if stream is None:
        stream = sys.stdin.buffer
    try:
        data = stream.read()
    except OSError as exc:
        raise DocumentReadError(f"failed to read SVG from stdin: {exc}") from exc
    return parse_document(data, ParseOptions(dpi=dpi, unsafe=unsafe))


def reload_document(source: FileSource, options: ParseOptions) -> Document:
    return parse_document(_read_file(source.path), options)


def parse_document(data: bytes, options: ParseOptions) -> Document:
    if not data or not data.strip():
        raise DocumentParseError("SVG input is empty")
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise DocumentParseError(f"malformed SVG: {exc}") from exc
    if _strip_namespace(root.tag) != "svg":
        raise DocumentParseError(f"root element is <{_strip_namespace(root.tag)}>, expected <svg>")

    width = _parse_length(root.attrib.get("width"))
    height = _parse_length(root.attrib.get("height"))
    viewbox = _parse_viewbox(root.attrib.get("viewBox"))
    if viewbox is None and width is not None and height is not None and width > 0 and height > 0:
        viewbox = (0.0, 0.0, width, height)
        root.set("viewBox", f"0 0 {_format_number(width)} {_format_number(height)}")
    root.set("preserveAspectRatio", "none")
    return Document(
        markup=ET.tostring(root, encoding="utf-8"),
        width=width,
        height=height,
        viewbox=viewbox,
        options=options,
    )


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DocumentReadError(f"failed to read SVG file {path}: {exc}") from exc


def _strip_namespace(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    value = value.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def _parse_viewbox(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        return tuple(float(p) for p in parts)  # type: ignore[return-value]
    except ValueError:
        return None


def _format_number(value: float) -> str:
    return f"{value:.10g}"
