from __future__ import annotations

import io
from typing import Protocol

import numpy as np
from PIL import Image
import torch

from svgview_core.errors import AllocationError, RasterizeError

from .document import Document


class Rasterizer(Protocol):
    """Paints a document into an RGBA8 tensor of exactly (height, width, 4)."""

    def render_rgba(self, document: Document, width: int, height: int) -> torch.Tensor:
        ...


class CairoSvgRasterizer:
    """cairosvg-backed rasterizer; PNG output is decoded back to RGBA with Pillow."""

    def render_rgba(self, document: Document, width: int, height: int) -> torch.Tensor:
        import cairosvg

        options = document.options
        try:
            png = cairosvg.svg2png(
                bytestring=document.markup,
                url=options.resources_url,
                dpi=options.dpi,
                unsafe=options.unsafe,
                output_width=width,
                output_height=height,
            )
        except Exception as exc:  # noqa: BLE001
            raise RasterizeError(f"cairosvg failed to render document: {exc}") from exc
        if not png:
            raise RasterizeError("cairosvg produced no output")
        with Image.open(io.BytesIO(png)) as decoded:
            image = decoded.convert("RGBA")
        if image.size != (width, height):
            raise RasterizeError(f"rasterizer returned {image.size[0]}x{image.size[1]}, expected {width}x{height}")
        return torch.from_numpy(np.array(image, dtype=np.uint8))


class RasterSurface:
    """RGBA8 pixel buffer sized to the viewport, fully repainted on every rasterize."""

    def __init__(self, pixels: torch.Tensor) -> None:
        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != torch.uint8:
            raise ValueError(f"invalid surface tensor: shape={tuple(pixels.shape)} dtype={pixels.dtype}")
        self._pixels = pixels

    @classmethod
    def allocate(cls, width: int, height: int) -> "RasterSurface":
        if width <= 0 or height <= 0:
            raise AllocationError(f"cannot allocate {width}x{height} surface; both dimensions must be > 0")
        try:
            pixels = torch.zeros((height, width, 4), dtype=torch.uint8)
        except (MemoryError, RuntimeError) as exc:
            raise AllocationError(f"could not allocate memory for {width}x{height} surface") from exc
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def nbytes(self) -> int:
        return self.width * self.height * 4

    @property
    def pixels(self) -> torch.Tensor:
        return self._pixels

    def to_bytes(self) -> bytes:
        return self._pixels.numpy().tobytes()

    def clear(self) -> None:
        self._pixels.zero_()

    def rasterize(self, document: Document, rasterizer: Rasterizer) -> None:
        self.clear()
        painted = rasterizer.render_rgba(document, self.width, self.height)
        expected = (self.height, self.width, 4)
        if tuple(painted.shape) != expected:
            raise RasterizeError(f"rasterizer returned shape {tuple(painted.shape)}, expected {expected}")
        if painted.dtype != torch.uint8:
            raise RasterizeError(f"rasterizer returned dtype {painted.dtype}, expected torch.uint8")
        self._pixels.copy_(painted)
