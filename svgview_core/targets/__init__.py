from .base import DisplayFrame, RenderTarget
from .headless_target import HeadlessTarget
from .tk_target import TkTarget, compose_frame

__all__ = ["DisplayFrame", "HeadlessTarget", "RenderTarget", "TkTarget", "compose_frame"]
