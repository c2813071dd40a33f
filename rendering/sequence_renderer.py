"""
Drive a compositor over evenly spaced progress samples.

Encoding frames to disk is left to the sink (see ``main.py``); the renderer
only samples progress, names frames and hands them over in order.
"""
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from core.logging.logger import get_logger, is_perf_metrics_enabled
from rendering.pixel_buffer import PixelBuffer

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedFrame:
    """One composited frame of a sequence."""
    index: int
    progress: float
    canvas: PixelBuffer
    filename: str


FrameSink = Callable[[RenderedFrame], None]


def progress_samples(frame_count: int) -> List[float]:
    """``[i / F for i in 0..F]``, so both endpoints are included."""
    return [i / frame_count for i in range(frame_count + 1)]


def frame_filename(index: int, frame_count: int, prefix: str = "frame_",
                   extension: str = "png") -> str:
    """Zero-padded name wide enough for the last index, at least 3 digits."""
    digits = max(3, len(str(frame_count)))
    return f"{prefix}{index:0{digits}d}.{extension.lstrip('.')}"


class SequenceRenderer:
    """Renders ``frame_count + 1`` frames of one transition."""

    def __init__(self, compositor, prefix: str = "frame_", extension: str = "png"):
        """
        Args:
            compositor: Anything with ``composite(kind, progress, a, b)``
            prefix: Frame filename prefix
            extension: Frame filename extension
        """
        self._compositor = compositor
        self._prefix = prefix
        self._extension = extension

    @staticmethod
    def progress_samples(frame_count: int) -> List[float]:
        return progress_samples(frame_count)

    def frame_filename(self, index: int, frame_count: int) -> str:
        return frame_filename(index, frame_count, self._prefix, self._extension)

    def render(self, kind, image_a: PixelBuffer, image_b: PixelBuffer, frame_count: int,
               sink: Optional[FrameSink] = None) -> List[RenderedFrame]:
        """
        Composite every sample in order.

        Args:
            kind: Transition to render
            image_a: Outgoing image
            image_b: Incoming image
            frame_count: Number of intervals F; F + 1 frames are produced
            sink: Receives each frame as it is finished. Frames handed to a
                sink are not kept.

        Returns:
            The frames, or an empty list when a sink was given
        """
        if frame_count < 1:
            logger.warning("[FALLBACK] Frame count %s below 1, rendering a single interval", frame_count)
            frame_count = 1

        start_time = time.perf_counter()
        frames: List[RenderedFrame] = []
        samples = progress_samples(frame_count)
        for index, progress in enumerate(samples):
            canvas = self._compositor.composite(kind, progress, image_a, image_b)
            frame = RenderedFrame(index, progress, canvas, self.frame_filename(index, frame_count))
            if sink is not None:
                sink(frame)
            else:
                frames.append(frame)

        elapsed = time.perf_counter() - start_time
        logger.info("Rendered %d frames of %s", len(samples), getattr(kind, 'name', kind))
        if is_perf_metrics_enabled():
            logger.info("[PERF] Sequence %s: %d frames in %.2fs (%.1f fps)",
                        getattr(kind, 'name', kind), len(samples), elapsed,
                        len(samples) / elapsed if elapsed > 0 else 0.0)
        return frames
