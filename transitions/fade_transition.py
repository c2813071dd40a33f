"""
Photometric fades: fade through the background color, and cross-fade.
"""
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def alpha_from(fraction: float) -> int:
    """Map ``[0, 1]`` to an 8-bit opacity, clamped."""
    return max(0, min(255, int(round(255.0 * fraction))))


def plan_fade_to_black(progress: float, ctx: FrameContext) -> FramePlan:
    """A fades to the background over the first half, B fades in over the second."""
    if progress <= 0.5:
        layer = SpriteLayer(ctx.image_a, Transform(opacity=alpha_from(1.0 - 2.0 * progress)))
    else:
        layer = SpriteLayer(ctx.image_b, Transform(opacity=alpha_from(2.0 * progress - 1.0)))
    return FramePlan(ctx.params.background, (layer,))


def plan_cross_fade(progress: float, ctx: FrameContext) -> FramePlan:
    return FramePlan(ctx.params.background, (
        SpriteLayer(ctx.image_a, Transform()),
        SpriteLayer(ctx.image_b, Transform(opacity=alpha_from(progress))),
    ))
