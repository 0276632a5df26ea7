from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from svgview_core.core.events import EventQueue, Quit, Resize
from svgview_core.errors import PresentError

from .base import DisplayFrame, RenderTarget

LOGGER = logging.getLogger(__name__)


def compose_frame(frame: DisplayFrame, background: tuple[int, int, int, int]) -> Image.Image:
    """Flatten an RGBA frame over the window background."""
    rgba = frame.rgba
    if rgba.ndim != 3 or tuple(rgba.shape) != (frame.height, frame.width, 4):
        raise ValueError(f"invalid frame shape: {tuple(rgba.shape)}")
    image = Image.fromarray(rgba.contiguous().numpy())
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    backdrop = Image.new("RGBA", image.size, background)
    return Image.alpha_composite(backdrop, image)


class TkTarget(RenderTarget):
    """Resizable Tk window; input is posted to the viewer queue from `pump_events`."""

    def __init__(
        self,
        events: EventQueue,
        *,
        width: int,
        height: int,
        title: str = "svgview",
        background: tuple[int, int, int, int] = (255, 255, 255, 255),
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        self._events = events
        self._size = (width, height)
        self._title = title
        self._background = background
        self._root = None
        self._canvas = None
        self._image_item: Optional[int] = None
        self._photo = None
        self._closed = False
        self._last_configure: Optional[tuple[int, int]] = None

    def start(self) -> None:
        if self._root is not None:
            return
        import tkinter as tk

        try:
            root = tk.Tk()
        except tk.TclError as exc:
            raise PresentError(f"could not open a display window: {exc}") from exc
        root.title(self._title)
        root.protocol("WM_DELETE_WINDOW", self._on_close)
        root.bind("<Escape>", self._on_escape)
        r, g, b, _ = self._background
        canvas = tk.Canvas(
            root,
            width=self._size[0],
            height=self._size[1],
            highlightthickness=0,
            borderwidth=0,
            background=f"#{r:02x}{g:02x}{b:02x}",
        )
        canvas.pack(fill="both", expand=True)
        canvas.bind("<Configure>", self._on_configure)
        self._image_item = canvas.create_image(0, 0, anchor="nw")
        self._root = root
        self._canvas = canvas
        self._closed = False

    def viewport_size(self) -> tuple[int, int]:
        return self._size

    def present_frame(self, frame: DisplayFrame) -> None:
        if self._root is None or self._canvas is None:
            raise PresentError("TkTarget must be started before presenting frames")
        from PIL import ImageTk
        import tkinter as tk

        image = compose_frame(frame, self._background)
        try:
            photo = ImageTk.PhotoImage(image, master=self._root)
            self._canvas.itemconfigure(self._image_item, image=photo)
            self._root.update_idletasks()
        except tk.TclError as exc:
            raise PresentError(f"Tk failed to present frame {frame.revision}: {exc}") from exc
        # Tk does not hold a Python reference to the photo.
        self._photo = photo

    def stop(self) -> None:
        root, self._root = self._root, None
        self._canvas = None
        self._photo = None
        if root is None:
            return
        import tkinter as tk

        try:
            root.destroy()
        except tk.TclError:
            LOGGER.debug("Tk root already destroyed")

    def pump_events(self) -> None:
        if self._root is None:
            return
        import tkinter as tk

        try:
            self._root.update()
        except tk.TclError:
            self._closed = True

    def should_close(self) -> bool:
        return self._closed

    def _on_configure(self, event) -> None:
        size = (int(event.width), int(event.height))
        if size[0] <= 0 or size[1] <= 0 or size == self._last_configure:
            return
        self._last_configure = size
        self._size = size
        self._events.post(Resize(width=size[0], height=size[1]))

    def _on_escape(self, _event) -> None:
        self._events.post(Quit(reason="escape"))

    def _on_close(self) -> None:
        self._events.post(Quit(reason="close"))
