"""
Blur fade - A blurs out, the two images dissolve at peak blur, B sharpens in.
"""
from PySide6.QtGui import QImage

from rendering.blur_processor import blur_fade_schedule
from rendering.pixel_buffer import PixelBuffer
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def _blurred_layer(ctx: FrameContext, fitted: PixelBuffer, image: QImage,
                   radius: float, opacity: int) -> SpriteLayer:
    blurred = ctx.blur.blur(fitted, radius)
    if blurred is fitted:
        return SpriteLayer(image, Transform(opacity=opacity))
    # Small blurred copy is stretched back over the canvas
    fill = ctx.fill_canvas(blurred.size)
    return SpriteLayer(blurred.to_qimage(), Transform(scale=fill.scale, opacity=opacity))


def plan_blur_fade(progress: float, ctx: FrameContext) -> FramePlan:
    if ctx.blur is None:
        raise RuntimeError("Blur fade needs a BlurProcessor")
    step = blur_fade_schedule(progress, ctx.params.blur_max_radius)
    layers = []
    if step.draws_a:
        layers.append(_blurred_layer(ctx, ctx.fitted_a, ctx.image_a, step.radius, step.alpha_a))
    if step.draws_b:
        layers.append(_blurred_layer(ctx, ctx.fitted_b, ctx.image_b, step.radius, step.alpha_b))
    return FramePlan(ctx.params.background, tuple(layers))
