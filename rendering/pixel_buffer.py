"""
RGBA8 raster shared by every compositor stage.

A PixelBuffer wraps a contiguous ``uint8[H, W, 4]`` numpy array. Each
instance carries a process-unique serial so caches can tell a reloaded image
from the one they were built against.
"""
from __future__ import annotations

import itertools
from typing import Sequence, Tuple

import numpy as np
from PIL import Image
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage

from core.logging.logger import get_logger

logger = get_logger(__name__)

_serials = itertools.count(1)

Color = Tuple[int, int, int, int]


class PixelBuffer:
    """Flat RGBA8 raster plus width/height."""

    __slots__ = ("_pixels", "_serial")

    def __init__(self, pixels: np.ndarray):
        """
        Args:
            pixels: ``uint8`` array shaped ``(height, width, 4)``
        """
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        self._pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        self._serial = next(_serials)

    # --- construction ---------------------------------------------------
    @classmethod
    def empty(cls) -> "PixelBuffer":
        return cls(np.zeros((0, 0, 4), dtype=np.uint8))

    @classmethod
    def solid(cls, width: int, height: int, color: Sequence[int]) -> "PixelBuffer":
        """Create a buffer filled with one RGB or RGBA color."""
        rgba = tuple(color) + (255,) * (4 - len(color))
        pixels = np.empty((max(0, height), max(0, width), 4), dtype=np.uint8)
        pixels[...] = np.array(rgba[:4], dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        """Wrap raw RGBA8 bytes (row-major, no padding)."""
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height}, got {len(data)}")
        return cls(np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4).copy())

    @classmethod
    def from_qimage(cls, image: QImage) -> "PixelBuffer":
        """Copy a QImage into a new buffer (converted to straight RGBA8888)."""
        if image.isNull() or image.width() < 1 or image.height() < 1:
            return cls.empty()
        if image.format() != QImage.Format.Format_RGBA8888:
            image = image.convertToFormat(QImage.Format.Format_RGBA8888)
        width, height, stride = image.width(), image.height(), image.bytesPerLine()
        ptr = image.constBits()
        if hasattr(ptr, 'setsize'):
            # sip.voidptr (older PySide6 versions)
            ptr.setsize(image.sizeInBytes())
            raw = np.frombuffer(bytes(ptr), dtype=np.uint8)
        else:
            # memoryview (newer PySide6 versions)
            raw = np.frombuffer(ptr, dtype=np.uint8, count=image.sizeInBytes())
        rows = raw.reshape(height, stride)[:, :width * 4]
        return cls(rows.reshape(height, width, 4).copy())

    # --- accessors --------------------------------------------------------
    @property
    def pixels(self) -> np.ndarray:
        """The ``(H, W, 4)`` array. Treat as read-only for source images."""
        return self._pixels

    @property
    def data(self) -> np.ndarray:
        """Flat view of the raster, ``width * height * 4`` bytes."""
        return self._pixels.reshape(-1)

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def serial(self) -> int:
        return self._serial

    @property
    def is_empty(self) -> bool:
        return self.width < 1 or self.height < 1

    def pixel(self, x: int, y: int) -> Color:
        r, g, b, a = (int(c) for c in self._pixels[y, x])
        return (r, g, b, a)

    def to_bytes(self) -> bytes:
        return self._pixels.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self._pixels.copy())

    # --- conversions ------------------------------------------------------
    def to_qimage(self) -> QImage:
        """Return a QImage (RGBA8888) that owns a copy of the pixels."""
        if self.is_empty:
            return QImage()
        image = QImage(
            self._pixels.tobytes(),
            self.width,
            self.height,
            self.width * 4,
            QImage.Format.Format_RGBA8888,
        )
        # Detach from the temporary bytes object
        return image.copy()

    def resample_nearest(self, width: int, height: int) -> "PixelBuffer":
        """Nearest-neighbor resample: ``src = dst * src_size // dst_size``."""
        if (width, height) == self.size:
            return self
        if self.is_empty or width < 1 or height < 1:
            return PixelBuffer.empty()
        ys, xs = nearest_indices(self.size, (width, height))
        return PixelBuffer(self._pixels[ys[:, None], xs[None, :]])

    def resize(self, width: int, height: int, use_lanczos: bool = False) -> "PixelBuffer":
        """
        Stretch the image to exactly ``width`` x ``height``.

        Args:
            width: Target width
            height: Target height
            use_lanczos: Use PIL Lanczos resampling instead of Qt smooth scaling

        Returns:
            Resized buffer (``self`` when the size already matches)
        """
        if (width, height) == self.size:
            return self
        if self.is_empty or width < 1 or height < 1:
            return PixelBuffer.empty()

        if use_lanczos:
            pil_image = Image.fromarray(self._pixels)
            scaled = pil_image.resize((width, height), Image.Resampling.LANCZOS)
            logger.debug(f"Scaled with Lanczos: {self.width}x{self.height} -> {width}x{height}")
            return PixelBuffer(np.asarray(scaled, dtype=np.uint8))

        scaled = self.to_qimage().scaled(
            width, height,
            Qt.AspectRatioMode.IgnoreAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        return PixelBuffer.from_qimage(scaled)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, serial={self._serial})"


def nearest_indices(src_size: Tuple[int, int], dst_size: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray]:
    """Row and column source indices for a nearest-neighbor mapping.

    Returns:
        ``(ys, xs)`` integer arrays of length ``dst_height`` / ``dst_width``
    """
    src_w, src_h = src_size
    dst_w, dst_h = dst_size
    xs = (np.arange(dst_w, dtype=np.int64) * src_w) // max(1, dst_w)
    ys = (np.arange(dst_h, dtype=np.int64) * src_h) // max(1, dst_h)
    return ys, xs
