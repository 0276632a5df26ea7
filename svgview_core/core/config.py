from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Literal, Mapping


WatchEventPolicy = Literal["auto", "close_write", "modified"]
ReloadFailurePolicy = Literal["keep", "abort"]

WATCH_EVENT_POLICIES: tuple[str, ...] = ("auto", "close_write", "modified")
RELOAD_FAILURE_POLICIES: tuple[str, ...] = ("keep", "abort")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_TITLE = "svgview"
DEFAULT_SIZE = (800, 600)


@dataclass(frozen=True)
class ViewerConfig:
    """Runtime knobs for the viewer; CLI flags are layered over `from_env`."""

    title: str = DEFAULT_TITLE
    width: int = DEFAULT_SIZE[0]
    height: int = DEFAULT_SIZE[1]
    dpi: float = 96.0
    unsafe: bool = False
    background: tuple[int, int, int, int] = (255, 255, 255, 255)
    debounce_s: float = 0.0
    watch_events: WatchEventPolicy = "auto"
    reload_failure: ReloadFailurePolicy = "keep"
    idle_poll_s: float = 1 / 120
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")
        if self.dpi <= 0:
            raise ValueError("dpi must be > 0")
        if self.debounce_s < 0:
            raise ValueError("debounce_s must be >= 0")
        if self.idle_poll_s <= 0:
            raise ValueError("idle_poll_s must be > 0")
        if self.watch_events not in WATCH_EVENT_POLICIES:
            raise ValueError(f"unsupported watch_events: {self.watch_events}")
        if self.reload_failure not in RELOAD_FAILURE_POLICIES:
            raise ValueError(f"unsupported reload_failure: {self.reload_failure}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"unsupported log_level: {self.log_level}")
        if len(self.background) != 4 or any(c < 0 or c > 255 for c in self.background):
            raise ValueError("background must be an RGBA255 tuple")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "ViewerConfig":
        kwargs: dict[str, object] = {}
        if "SVGVIEW_WIDTH" in environ:
            kwargs["width"] = _parse_int(environ, "SVGVIEW_WIDTH")
        if "SVGVIEW_HEIGHT" in environ:
            kwargs["height"] = _parse_int(environ, "SVGVIEW_HEIGHT")
        if "SVGVIEW_DEBOUNCE_MS" in environ:
            kwargs["debounce_s"] = _parse_float(environ, "SVGVIEW_DEBOUNCE_MS") / 1000.0
        if "SVGVIEW_WATCH_EVENTS" in environ:
            kwargs["watch_events"] = environ["SVGVIEW_WATCH_EVENTS"].strip().lower()
        if "SVGVIEW_ON_RELOAD_ERROR" in environ:
            kwargs["reload_failure"] = environ["SVGVIEW_ON_RELOAD_ERROR"].strip().lower()
        if "SVGVIEW_LOG" in environ:
            kwargs["log_level"] = environ["SVGVIEW_LOG"].strip().upper()
        return cls(**kwargs)  # type: ignore[arg-type]


def _parse_int(environ: Mapping[str, str], key: str) -> int:
    try:
        return int(environ[key])
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {environ[key]!r}") from exc


def _parse_float(environ: Mapping[str, str], key: str) -> float:
    try:
        return float(environ[key])
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {environ[key]!r}") from exc
