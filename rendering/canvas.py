"""
Fixed-size render surface for composited frames.

The canvas is created once per compositor and cleared to an opaque
background before every frame, so nothing from a previous frame can leak
into the next one.
"""
from contextlib import contextmanager
from typing import Iterator, Sequence

from PySide6.QtGui import QColor, QImage, QPainter

from core.logging.logger import get_logger
from rendering.pixel_buffer import PixelBuffer

logger = get_logger(__name__)


class Canvas:
    """Opaque RGBA8 surface painted through QPainter."""

    def __init__(self, width: int, height: int, background: Sequence[int] = (0, 0, 0)):
        """
        Args:
            width: Logical canvas width in pixels
            height: Logical canvas height in pixels
            background: RGB clear color
        """
        self._width = int(width)
        self._height = int(height)
        self._background = QColor(*background[:3])
        if self.is_degenerate:
            logger.warning("[FALLBACK] Degenerate canvas %dx%d, frames will be empty",
                           self._width, self._height)
            self._image = QImage()
        else:
            # Premultiplied is the fast path for QPainter; opaque pixels are
            # identical in straight and premultiplied form.
            self._image = QImage(self._width, self._height,
                                 QImage.Format.Format_RGBA8888_Premultiplied)
            self._image.fill(self._background)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def is_degenerate(self) -> bool:
        return self._width < 1 or self._height < 1

    @property
    def image(self) -> QImage:
        return self._image

    def clear(self, color: Sequence[int] = None) -> None:
        """Fill the whole canvas with an opaque color (default: background)."""
        if self.is_degenerate:
            return
        self._image.fill(QColor(*color[:3]) if color is not None else self._background)

    @contextmanager
    def painter(self) -> Iterator[QPainter]:
        """Yield a QPainter bound to the canvas, always ended on exit."""
        p = QPainter(self._image)
        try:
            p.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            yield p
        finally:
            p.end()

    def snapshot(self) -> PixelBuffer:
        """Copy the current frame out as a straight-alpha PixelBuffer."""
        if self.is_degenerate:
            return PixelBuffer.empty()
        return PixelBuffer.from_qimage(self._image)
