"""
TransitionCompositor - turns two images and a progress value into one frame.

Each call fits both sources to the canvas, asks the planner for the
requested kind to lay out the frame, and paints the plan onto the canvas
with QPainter. Per-kind math lives in the ``*_transition`` modules; this
module only owns the shared state (canvas, fitted-source cache, pixel
processors, worker pool) and the painting.
"""
from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict, Optional, Tuple, Union

from PySide6.QtCore import QPointF, QRectF
from PySide6.QtGui import QColor, QImage, QPainter, QTransform

from core.logging.logger import get_logger, is_perf_metrics_enabled, is_verbose_logging
from core.threading.manager import ThreadManager
from rendering.blur_processor import BlurProcessor
from rendering.canvas import Canvas
from rendering.luma_processor import LumaProcessor
from rendering.perspective_projector import PerspectiveProjector, quad_homography
from rendering.pixel_buffer import PixelBuffer
from transitions.blur_fade_transition import plan_blur_fade
from transitions.box_transition import plan_box_in, plan_box_out
from transitions.fade_transition import plan_cross_fade, plan_fade_to_black
from transitions.fly_away_transition import plan_fly_away
from transitions.luma_wipe_transition import plan_luma_wipe
from transitions.page_turn_transition import plan_page_turn_horizontal, plan_page_turn_vertical
from transitions.perspective_transition import plan_cube_rotate, plan_ring
from transitions.shutter_transition import plan_shutter_open
from transitions.slide_transition import (
    plan_slide_bottom,
    plan_slide_left,
    plan_slide_right,
    plan_slide_top,
)
from transitions.types import (
    FrameContext,
    FramePlan,
    MeshLayer,
    SpriteLayer,
    Transform,
    TransitionKind,
    TransitionParams,
)

logger = get_logger(__name__)

Planner = Callable[[float, FrameContext], FramePlan]

PLANNERS: Dict[TransitionKind, Planner] = {
    TransitionKind.SLIDE_LEFT: plan_slide_left,
    TransitionKind.SLIDE_RIGHT: plan_slide_right,
    TransitionKind.SLIDE_TOP: plan_slide_top,
    TransitionKind.SLIDE_BOTTOM: plan_slide_bottom,
    TransitionKind.BOX_IN: plan_box_in,
    TransitionKind.BOX_OUT: plan_box_out,
    TransitionKind.FADE_TO_BLACK: plan_fade_to_black,
    TransitionKind.CROSS_FADE: plan_cross_fade,
    TransitionKind.PAGE_TURN_HORIZONTAL: plan_page_turn_horizontal,
    TransitionKind.PAGE_TURN_VERTICAL: plan_page_turn_vertical,
    TransitionKind.SHUTTER_OPEN: plan_shutter_open,
    TransitionKind.BLUR_FADE: plan_blur_fade,
    TransitionKind.CUBE_ROTATE: plan_cube_rotate,
    TransitionKind.RING: plan_ring,
    TransitionKind.LUMA_WIPE: plan_luma_wipe,
    TransitionKind.FLY_AWAY: plan_fly_away,
}


def clamp_progress(progress: float) -> float:
    """Clamp to ``[0, 1]``; NaN and non-numbers map to 0."""
    try:
        value = float(progress)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


class TransitionCompositor:
    """
    CPU compositor for the sixteen transitions.

    A compositor has a fixed canvas size. ``composite()`` is safe to call from
    several threads; calls are serialized on the shared canvas while the
    per-row pixel work runs on the worker pool.
    """

    def __init__(self, width: int = 1200, height: int = 800,
                 params: Optional[TransitionParams] = None,
                 thread_manager: Optional[ThreadManager] = None,
                 workers: Optional[int] = None,
                 use_lanczos: bool = False):
        """
        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            params: Per-effect tunables (defaults if None)
            thread_manager: Shared worker pool; one is created and owned if None
            workers: Worker count for an owned pool (None = cpu count)
            use_lanczos: Fit sources with Lanczos instead of Qt smooth scaling
        """
        self._params = params or TransitionParams()
        self._owns_pool = thread_manager is None
        self._thread_manager = thread_manager or ThreadManager(max_workers=workers)
        self._use_lanczos = bool(use_lanczos)
        self._canvas = Canvas(width, height, self._params.background)
        self._luma = LumaProcessor(self._thread_manager)
        self._blur = BlurProcessor(self._thread_manager)
        self._projector = PerspectiveProjector(
            strips=self._params.cube_strips,
            fov=self._params.cube_fov,
            ring_radius=self._params.ring_radius,
            ring_depth=self._params.ring_depth,
        )
        # serial -> (fitted buffer, fitted QImage)
        self._fitted: Dict[int, Tuple[PixelBuffer, QImage]] = {}
        self._lock = threading.RLock()
        self._frames = 0
        logger.debug("TransitionCompositor created (%dx%d, workers=%d, lanczos=%s)",
                     self._canvas.width, self._canvas.height,
                     self._thread_manager.worker_count, self._use_lanczos)

    @classmethod
    def from_settings(cls, settings, thread_manager: Optional[ThreadManager] = None) -> "TransitionCompositor":
        """Build from a ``CompositorSettings`` instance."""
        params = TransitionParams(
            blur_max_radius=settings.blur_max_radius,
            cube_strips=settings.cube_strips,
            cube_fov=settings.cube_fov,
            ring_radius=settings.ring_radius,
            ring_depth=settings.ring_depth,
            background=tuple(settings.background),
        )
        return cls(
            settings.canvas_width,
            settings.canvas_height,
            params=params,
            thread_manager=thread_manager,
            workers=settings.workers or None,
            use_lanczos=settings.use_lanczos,
        )

    # --- properties -------------------------------------------------------
    @property
    def width(self) -> int:
        return self._canvas.width

    @property
    def height(self) -> int:
        return self._canvas.height

    @property
    def params(self) -> TransitionParams:
        return self._params

    @property
    def thread_manager(self) -> ThreadManager:
        return self._thread_manager

    @property
    def luma_processor(self) -> LumaProcessor:
        return self._luma

    @property
    def blur_processor(self) -> BlurProcessor:
        return self._blur

    @property
    def projector(self) -> PerspectiveProjector:
        return self._projector

    @property
    def frames_rendered(self) -> int:
        return self._frames

    # --- public API -------------------------------------------------------
    def composite(self, kind: Union[TransitionKind, str], progress: float,
                  image_a: Optional[PixelBuffer], image_b: Optional[PixelBuffer]) -> PixelBuffer:
        """
        Render one frame.

        Args:
            kind: Transition to draw (enum or name)
            progress: 0 shows A, 1 shows B; clamped, NaN treated as 0
            image_a: Outgoing image (None or empty = absent)
            image_b: Incoming image (None or empty = absent)

        Returns:
            Opaque canvas-size frame; empty buffer for a degenerate canvas.
            Never raises: failures are logged and a fallback frame returned.
        """
        if self._canvas.is_degenerate:
            return PixelBuffer.empty()

        p = clamp_progress(progress)
        image_a = image_a if image_a is not None else PixelBuffer.empty()
        image_b = image_b if image_b is not None else PixelBuffer.empty()

        with self._lock:
            start_time = time.perf_counter()
            try:
                frame = self._composite_locked(kind, p, image_a, image_b)
            except Exception as e:
                logger.error("Composite failed for %s at p=%.3f: %s", kind, p, e, exc_info=True)
                return self._fallback_frame(p, image_a, image_b)
            self._frames += 1
            if is_perf_metrics_enabled():
                logger.debug("[PERF] Composite %s p=%.3f in %.2fms", getattr(kind, 'name', kind), p,
                             (time.perf_counter() - start_time) * 1000.0)
            return frame

    def plan(self, kind: Union[TransitionKind, str], progress: float,
             image_a: PixelBuffer, image_b: PixelBuffer) -> FramePlan:
        """Lay out one frame without painting it."""
        kind = TransitionKind.from_name(kind)
        with self._lock:
            ctx = self._context(image_a, image_b)
            return PLANNERS[kind](clamp_progress(progress), ctx)

    def clear_cache(self) -> None:
        """Drop fitted sources and cached luma."""
        with self._lock:
            self._fitted.clear()
            self._luma.invalidate()

    def shutdown(self) -> None:
        """Stop the worker pool if this compositor created it."""
        self.clear_cache()
        if self._owns_pool and not self._thread_manager.is_shutdown:
            self._thread_manager.shutdown(wait=True)

    def __enter__(self) -> "TransitionCompositor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # --- internals --------------------------------------------------------
    def _composite_locked(self, kind, progress: float, image_a: PixelBuffer,
                          image_b: PixelBuffer) -> PixelBuffer:
        kind = TransitionKind.from_name(kind)
        if image_a.is_empty or image_b.is_empty:
            logger.debug("[FALLBACK] Missing input (a=%r, b=%r), drawing available image",
                         image_a, image_b)
            return self._paint(self._single_image_plan(image_b if not image_b.is_empty else image_a))

        ctx = self._context(image_a, image_b)
        plan = PLANNERS[kind](progress, ctx)
        if is_verbose_logging():
            logger.debug("Plan %s p=%.3f: %d layer(s)", kind.name, progress, len(plan.layers))
        return self._paint(plan)

    def _fallback_frame(self, progress: float, image_a: PixelBuffer, image_b: PixelBuffer) -> PixelBuffer:
        """Untransformed nearest endpoint, or the background if even that fails."""
        preferred, other = (image_a, image_b) if progress < 0.5 else (image_b, image_a)
        chosen = preferred if not preferred.is_empty else other
        try:
            with self._lock:
                return self._paint(self._single_image_plan(chosen))
        except Exception as e:
            logger.error("[FALLBACK] Fallback frame failed: %s", e, exc_info=True)
            return PixelBuffer.solid(self._canvas.width, self._canvas.height, self._params.background)

    def _single_image_plan(self, image: PixelBuffer) -> FramePlan:
        if image.is_empty:
            return FramePlan(self._params.background)
        _, qimage = self._fit(image)
        self._prune_fitted((image.serial,))
        return FramePlan(self._params.background, (SpriteLayer(qimage, Transform()),))

    def _context(self, image_a: PixelBuffer, image_b: PixelBuffer) -> FrameContext:
        fitted_a, qimage_a = self._fit(image_a)
        fitted_b, qimage_b = self._fit(image_b)
        self._prune_fitted((image_a.serial, image_b.serial))
        return FrameContext(
            width=self._canvas.width,
            height=self._canvas.height,
            image_a=qimage_a,
            image_b=qimage_b,
            fitted_a=fitted_a,
            fitted_b=fitted_b,
            params=self._params,
            luma=self._luma,
            blur=self._blur,
            projector=self._projector,
        )

    def _fit(self, image: PixelBuffer) -> Tuple[PixelBuffer, QImage]:
        """Stretch ``image`` to the canvas, cached by serial."""
        cached = self._fitted.get(image.serial)
        if cached is not None:
            return cached
        fitted = image.resize(self._canvas.width, self._canvas.height, use_lanczos=self._use_lanczos)
        entry = (fitted, fitted.to_qimage())
        self._fitted[image.serial] = entry
        logger.debug("Fitted %r to %dx%d", image, self._canvas.width, self._canvas.height)
        return entry

    def _prune_fitted(self, keep) -> None:
        for serial in [s for s in self._fitted if s not in keep]:
            del self._fitted[serial]

    def _paint(self, plan: FramePlan) -> PixelBuffer:
        self._canvas.clear(plan.background)
        with self._canvas.painter() as painter:
            for layer in plan.layers:
                if isinstance(layer, MeshLayer):
                    self._paint_mesh(painter, layer)
                else:
                    self._paint_sprite(painter, layer)
        return self._canvas.snapshot()

    @staticmethod
    def _paint_sprite(painter: QPainter, layer: SpriteLayer) -> None:
        if layer.transform.is_degenerate or layer.image.isNull():
            return
        painter.save()
        try:
            painter.setTransform(layer.transform.to_qtransform())
            painter.setOpacity(layer.transform.opacity / 255.0)
            painter.drawImage(QPointF(0.0, 0.0), layer.image)
        finally:
            painter.restore()

    @staticmethod
    def _paint_mesh(painter: QPainter, layer: MeshLayer) -> None:
        """Draw each strip's texture rectangle through its own homography."""
        image = layer.image
        if image.isNull():
            return
        mesh = layer.mesh
        iw, ih = image.width(), image.height()
        shade_alpha = int(round((1.0 - mesh.shade) * 255.0))
        painter.save()
        try:
            for strip in mesh.strips:
                u0, v0, u1, v1 = strip.texture_rect
                x0, y0, x1, y1 = u0 * iw, v0 * ih, u1 * iw, v1 * ih
                if x1 - x0 <= 0.0 or y1 - y0 <= 0.0:
                    continue
                h = quad_homography(
                    [(x0, y0), (x1, y0), (x1, y1), (x0, y1)],
                    [(v.x, v.y) for v in strip.corners],
                )
                if h is None:
                    continue
                rect = QRectF(x0, y0, x1 - x0, y1 - y0)
                painter.setTransform(QTransform(*(float(m) for m in h.flatten())))
                painter.drawImage(rect, image, rect)
                if shade_alpha > 0:
                    painter.fillRect(rect, QColor(0, 0, 0, shade_alpha))
        finally:
            painter.restore()
