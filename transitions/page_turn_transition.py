"""
Page turn - the outgoing image folds flat along one axis, then the incoming
image unfolds from the same line.
"""
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def _axis_scale(ctx: FrameContext, amount: float, horizontal: bool) -> Transform:
    center = ctx.center
    scale = (amount, 1.0) if horizontal else (1.0, amount)
    return Transform(origin=center, position=center, scale=scale)


def _plan_page_turn(progress: float, ctx: FrameContext, horizontal: bool) -> FramePlan:
    if progress <= 0.5:
        layer = SpriteLayer(ctx.image_a, _axis_scale(ctx, 1.0 - 2.0 * progress, horizontal))
    else:
        layer = SpriteLayer(ctx.image_b, _axis_scale(ctx, 2.0 * progress - 1.0, horizontal))
    return FramePlan(ctx.params.background, (layer,))


def plan_page_turn_horizontal(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_page_turn(progress, ctx, horizontal=True)


def plan_page_turn_vertical(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_page_turn(progress, ctx, horizontal=False)
