"""
Box transitions - an image grows from, or shrinks into, the canvas center.
"""
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def centered_scale(ctx: FrameContext, scale: float, opacity: int = 255,
                   rotation: float = 0.0) -> Transform:
    """Uniform scale (and optional spin) about the canvas center."""
    center = ctx.center
    return Transform(origin=center, position=center, scale=(scale, scale),
                     rotation=rotation, opacity=opacity)


def plan_box_in(progress: float, ctx: FrameContext) -> FramePlan:
    """B grows from nothing over A."""
    return FramePlan(ctx.params.background, (
        SpriteLayer(ctx.image_a, Transform()),
        SpriteLayer(ctx.image_b, centered_scale(ctx, progress)),
    ))


def plan_box_out(progress: float, ctx: FrameContext) -> FramePlan:
    """A shrinks away, uncovering B."""
    return FramePlan(ctx.params.background, (
        SpriteLayer(ctx.image_b, Transform()),
        SpriteLayer(ctx.image_a, centered_scale(ctx, 1.0 - progress)),
    ))
