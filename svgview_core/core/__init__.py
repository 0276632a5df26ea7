from .config import DEFAULT_TITLE, ReloadFailurePolicy, ViewerConfig, WatchEventPolicy
from .events import EventQueue, FileChanged, Quit, RedrawRequested, Resize, ViewerEvent
from .watch_bridge import FileWatchBridge, resolve_watch_event_type
from .app_state import ViewerState, Viewport
from .viewer_runtime import ViewerRunResult, ViewerRuntime

__all__ = [
    "DEFAULT_TITLE",
    "EventQueue",
    "FileChanged",
    "FileWatchBridge",
    "Quit",
    "RedrawRequested",
    "ReloadFailurePolicy",
    "Resize",
    "ViewerConfig",
    "ViewerEvent",
    "ViewerRunResult",
    "ViewerRuntime",
    "ViewerState",
    "Viewport",
    "WatchEventPolicy",
    "resolve_watch_event_type",
]
