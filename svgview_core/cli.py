from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import os
import sys
from typing import Sequence

from svgview_core.core import EventQueue, ViewerConfig, ViewerRuntime
from svgview_core.core.config import LOG_LEVELS, RELOAD_FAILURE_POLICIES, WATCH_EVENT_POLICIES
from svgview_core.errors import ViewerError
from svgview_core.render.document import source_from_argument
from svgview_core.targets import HeadlessTarget, RenderTarget, TkTarget

LOGGER = logging.getLogger("svgview")

USAGE = "Usage:\n\tsvgview <path-to-svg>"
HEADLESS_DEFAULT_TICKS = 600


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svgview",
        description="View an SVG file, re-rendering on window resize and on file writes.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="SVG file to view. Omit or pass '-' to read the document from standard input.",
    )
    parser.add_argument("--width", type=int, default=None, help="Initial window width in pixels.")
    parser.add_argument("--height", type=int, default=None, help="Initial window height in pixels.")
    parser.add_argument("--render", choices=["tk", "headless"], default="tk")
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help=f"Max event-loop ticks. Default: run until quit for tk; {HEADLESS_DEFAULT_TICKS} for headless.",
    )
    parser.add_argument(
        "--debounce-ms",
        type=float,
        default=None,
        help="Coalesce file writes arriving within this window into one reload (0 disables).",
    )
    parser.add_argument("--watch-events", choices=list(WATCH_EVENT_POLICIES), default=None)
    parser.add_argument(
        "--on-reload-error",
        choices=list(RELOAD_FAILURE_POLICIES),
        default=None,
        help="keep: log and keep the last good document; abort: exit on a bad reload.",
    )
    parser.add_argument("--log-level", type=str.upper, choices=list(LOG_LEVELS), default=None)
    return parser


def resolve_config(args: argparse.Namespace, environ: dict[str, str] | None = None) -> ViewerConfig:
    config = ViewerConfig.from_env(os.environ if environ is None else environ)
    overrides: dict[str, object] = {}
    if args.width is not None:
        overrides["width"] = args.width
    if args.height is not None:
        overrides["height"] = args.height
    if args.debounce_ms is not None:
        overrides["debounce_s"] = args.debounce_ms / 1000.0
    if args.watch_events is not None:
        overrides["watch_events"] = args.watch_events
    if args.on_reload_error is not None:
        overrides["reload_failure"] = args.on_reload_error
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return replace(config, **overrides) if overrides else config


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_target(render: str, events: EventQueue, config: ViewerConfig) -> RenderTarget:
    if render == "headless":
        return HeadlessTarget(events, width=config.width, height=config.height, keep_frames=False)
    return TkTarget(
        events,
        width=config.width,
        height=config.height,
        title=config.title,
        background=config.background,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if len(args.paths) > 1:
        print(USAGE)
        return 0

    try:
        config = resolve_config(args)
    except ValueError as exc:
        print(f"svgview: {exc}", file=sys.stderr)
        return 2
    if args.ticks is not None and args.ticks <= 0:
        print("svgview: --ticks must be > 0", file=sys.stderr)
        return 2
    configure_logging(config.logging_level)

    max_ticks = args.ticks
    if max_ticks is None and args.render == "headless":
        max_ticks = HEADLESS_DEFAULT_TICKS

    source = source_from_argument(args.paths[0] if args.paths else None)
    events = EventQueue()
    target = build_target(args.render, events, config)
    runtime = ViewerRuntime(target=target, events=events, config=config)
    try:
        result = runtime.run(source, max_ticks=max_ticks)
    except ViewerError as exc:
        LOGGER.critical("%s", exc)
        return 1
    LOGGER.info(
        "run complete: ticks=%d frames=%d reloads=%d resizes=%d",
        result.ticks_run,
        result.frames_presented,
        result.reloads,
        result.resizes,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
