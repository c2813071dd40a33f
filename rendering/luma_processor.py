"""
Luma wipe: reveal the incoming image brightest-first.

The brightness of the incoming image is computed once and cached; each
frame only compares it against a progress-driven threshold. Both the luma
build and the per-frame select are row-partitioned across the compute pool.
"""
import threading
import time
from typing import Optional, Tuple

import numpy as np

from core.logging.logger import get_logger, is_perf_metrics_enabled, is_verbose_logging
from core.threading.manager import ThreadManager
from rendering.pixel_buffer import PixelBuffer, nearest_indices

logger = get_logger(__name__)

# Integer Rec.601 weights, scaled by 1000
LUMA_WEIGHTS = (299, 587, 114)


def luma_threshold(progress: float) -> float:
    """Brightness a pixel of the incoming image needs to be shown.

    ``(1 - progress) * 255``; at ``progress <= 0`` the wipe has not started
    and the threshold is above any 8-bit luma.
    """
    if progress <= 0.0:
        return 256.0
    return (1.0 - min(1.0, progress)) * 255.0


def compute_luma(pixels: np.ndarray) -> np.ndarray:
    """``(299 R + 587 G + 114 B) // 1000`` for an ``(H, W, 4)`` block."""
    rgb = pixels[..., :3].astype(np.uint32)
    wr, wg, wb = LUMA_WEIGHTS
    return ((rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb) // 1000).astype(np.uint8)


class LumaCache:
    """Per-pixel brightness of one image, tied to that image's identity."""

    def __init__(self):
        self._serial: Optional[int] = None
        self._size: Optional[Tuple[int, int]] = None
        self._values: Optional[np.ndarray] = None

    def is_valid(self, image: PixelBuffer) -> bool:
        """True when the cache was built from ``image`` and it has not changed size."""
        return (
            self._values is not None
            and self._serial == image.serial
            and self._size == image.size
        )

    def invalidate(self) -> None:
        self._serial = None
        self._size = None
        self._values = None

    @property
    def values(self) -> Optional[np.ndarray]:
        return self._values

    def rebuild(self, image: PixelBuffer, thread_manager: ThreadManager) -> np.ndarray:
        """Compute luma for every pixel of ``image`` and store it."""
        values = np.empty((image.height, image.width), dtype=np.uint8)
        src = image.pixels

        def _rows(start: int, stop: int) -> None:
            values[start:stop] = compute_luma(src[start:stop])

        thread_manager.run_partitioned(_rows, image.height, label="luma_cache")
        self._values = values
        self._serial = image.serial
        self._size = image.size
        return values


class LumaProcessor:
    """Computes luma-wipe frames between two images."""

    def __init__(self, thread_manager: ThreadManager):
        self._thread_manager = thread_manager
        self._cache = LumaCache()
        self._lock = threading.Lock()

    @property
    def cache(self) -> LumaCache:
        return self._cache

    def invalidate(self) -> None:
        """Drop cached brightness (call when the incoming image is replaced)."""
        with self._lock:
            self._cache.invalidate()

    def wipe(self, image_a: PixelBuffer, image_b: PixelBuffer, progress: float) -> PixelBuffer:
        """
        Select every output pixel from A or B by B's brightness.

        Args:
            image_a: Outgoing image
            image_b: Incoming image (its luma is cached)
            progress: Transition progress in [0, 1]

        Returns:
            Opaque buffer sized ``(min(Wa, Wb), min(Ha, Hb))``; empty if
            either input is empty
        """
        if image_a.is_empty or image_b.is_empty:
            logger.debug("[FALLBACK] Luma wipe skipped for empty input")
            return PixelBuffer.empty()

        start_time = time.perf_counter()
        width = min(image_a.width, image_b.width)
        height = min(image_a.height, image_b.height)
        threshold = luma_threshold(progress)

        with self._lock:
            if self._cache.is_valid(image_b):
                luma = self._cache.values
            else:
                logger.debug("Rebuilding luma cache for %r", image_b)
                luma = self._cache.rebuild(image_b, self._thread_manager)

        a_ys, a_xs = nearest_indices(image_a.size, (width, height))
        b_ys, b_xs = nearest_indices(image_b.size, (width, height))
        src_a = image_a.pixels
        src_b = image_b.pixels
        out = np.empty((height, width, 4), dtype=np.uint8)

        def _rows(start: int, stop: int) -> None:
            rows_a = src_a[a_ys[start:stop, None], a_xs[None, :]]
            rows_b = src_b[b_ys[start:stop, None], b_xs[None, :]]
            from_b = luma[b_ys[start:stop, None], b_xs[None, :]] >= threshold
            block = out[start:stop]
            block[...] = np.where(from_b[..., None], rows_b, rows_a)
            block[..., 3] = 255

        self._thread_manager.run_partitioned(_rows, height, label="luma_wipe")

        if is_verbose_logging() and is_perf_metrics_enabled():
            logger.debug("[PERF] Luma wipe %dx%d at p=%.3f in %.2fms",
                         width, height, progress, (time.perf_counter() - start_time) * 1000.0)
        return PixelBuffer(out)
