"""
Separable box blur on a downsampled copy of an image.

The source is reduced by stride sampling (every 4th pixel, no averaging)
before blurring, and the small result is returned as-is. Callers scale it
back up when drawing, which keeps the cost bounded for large canvases.
"""
import threading
import time
from dataclasses import dataclass

import numpy as np

from core.logging.logger import get_logger, is_perf_metrics_enabled, is_verbose_logging
from core.threading.manager import ThreadManager
from rendering.pixel_buffer import PixelBuffer

logger = get_logger(__name__)

DOWNSAMPLE_FACTOR = 4

# BlurFade breakpoints
BLUR_RAMP_END = 0.45
BLUR_HOLD_END = 0.55


@dataclass(frozen=True)
class BlurFadeStep:
    """Blur radius and per-image opacity for one BlurFade frame."""
    radius: float
    alpha_a: int
    alpha_b: int

    @property
    def draws_a(self) -> bool:
        return self.alpha_a > 0

    @property
    def draws_b(self) -> bool:
        return self.alpha_b > 0


def blur_fade_schedule(progress: float, max_radius: float) -> BlurFadeStep:
    """
    BlurFade timeline.

    - ``[0, 0.45]``: A only, radius ramps 0 -> max
    - ``(0.45, 0.55)``: both at max radius, A fades out while B fades in
    - ``[0.55, 1]``: B only, radius ramps max -> 0
    """
    p = max(0.0, min(1.0, progress))
    if p <= BLUR_RAMP_END:
        return BlurFadeStep(max_radius * p / BLUR_RAMP_END, 255, 0)
    if p < BLUR_HOLD_END:
        t = (p - BLUR_RAMP_END) / (BLUR_HOLD_END - BLUR_RAMP_END)
        alpha_a = int(round(255 * (1.0 - t)))
        return BlurFadeStep(max_radius, alpha_a, 255 - alpha_a)
    return BlurFadeStep(max_radius * (1.0 - p) / (1.0 - BLUR_HOLD_END), 0, 255)


def effective_radius(radius: float) -> int:
    """Box radius in downsampled pixels."""
    return max(1, int(radius / DOWNSAMPLE_FACTOR))


def _box_sums(block: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Windowed sums of ``2r+1`` samples along ``axis`` of an edge-padded block.

    ``block`` must already carry ``radius`` extra samples on both sides of
    ``axis``; the result is ``2 * radius`` shorter along it.
    """
    sums = np.cumsum(block, axis=axis, dtype=np.uint32)
    zero_shape = list(sums.shape)
    zero_shape[axis] = 1
    sums = np.concatenate([np.zeros(zero_shape, dtype=np.uint32), sums], axis=axis)
    window = 2 * radius + 1
    upper = np.take(sums, np.arange(window, sums.shape[axis]), axis=axis)
    lower = np.take(sums, np.arange(0, sums.shape[axis] - window), axis=axis)
    return upper - lower


class BlurProcessor:
    """Two-pass box blur with reusable downsample/scratch buffers."""

    def __init__(self, thread_manager: ThreadManager):
        self._thread_manager = thread_manager
        self._lock = threading.Lock()
        self._small: np.ndarray = np.zeros((0, 0, 4), dtype=np.uint8)
        self._scratch: np.ndarray = np.zeros((0, 0, 4), dtype=np.uint8)

    def _ensure_buffers(self, height: int, width: int) -> None:
        shape = (height, width, 4)
        if self._small.shape != shape:
            logger.debug("Resizing blur scratch buffers to %dx%d", width, height)
            self._small = np.empty(shape, dtype=np.uint8)
            self._scratch = np.empty(shape, dtype=np.uint8)

    def blur(self, image: PixelBuffer, radius: float) -> PixelBuffer:
        """
        Blur ``image`` at a quarter of its resolution.

        Args:
            image: Source image
            radius: Blur radius in source pixels

        Returns:
            ``image`` itself when ``radius < 1`` or the image is empty,
            otherwise a new downsampled, blurred buffer
        """
        if radius < 1 or image.is_empty:
            return image

        start_time = time.perf_counter()
        r = effective_radius(radius)
        src = image.pixels
        small_h = -(-image.height // DOWNSAMPLE_FACTOR)
        small_w = -(-image.width // DOWNSAMPLE_FACTOR)
        out = np.empty((small_h, small_w, 4), dtype=np.uint8)
        divisor = 2 * r + 1

        with self._lock:
            self._ensure_buffers(small_h, small_w)
            small = self._small
            scratch = self._scratch
            np.copyto(small, src[::DOWNSAMPLE_FACTOR, ::DOWNSAMPLE_FACTOR])

            def _horizontal(start: int, stop: int) -> None:
                rows = np.pad(small[start:stop], ((0, 0), (r, r), (0, 0)), mode="edge")
                scratch[start:stop] = _box_sums(rows, r, axis=1) // divisor

            def _vertical(start: int, stop: int) -> None:
                # Reads finished pass-1 rows, clamped at the image edges
                idx = np.clip(np.arange(start - r, stop + r), 0, small_h - 1)
                out[start:stop] = _box_sums(scratch[idx], r, axis=0) // divisor

            # Pass 1 joins before pass 2 reads its output
            self._thread_manager.run_partitioned(_horizontal, small_h, label="blur_h")
            self._thread_manager.run_partitioned(_vertical, small_h, label="blur_v")

        if is_verbose_logging() and is_perf_metrics_enabled():
            logger.debug("[PERF] Blur r=%.1f (box %d) %dx%d -> %dx%d in %.2fms",
                         radius, r, image.width, image.height, small_w, small_h,
                         (time.perf_counter() - start_time) * 1000.0)
        return PixelBuffer(out)
