"""
Slide transitions - the incoming image travels in from off-canvas.

The outgoing image stays put; only the incoming image moves.
"""
from typing import Tuple

from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform, TransitionKind


def slide_offset(kind: TransitionKind, progress: float, width: float, height: float) -> Tuple[float, float]:
    """Position of the incoming image for a slide.

    LEFT enters from the right edge and moves left, RIGHT from the left edge,
    TOP from above, BOTTOM from below.
    """
    remaining = 1.0 - progress
    if kind == TransitionKind.SLIDE_LEFT:
        return (width * remaining, 0.0)
    if kind == TransitionKind.SLIDE_RIGHT:
        return (-width * remaining, 0.0)
    if kind == TransitionKind.SLIDE_TOP:
        return (0.0, -height * remaining)
    if kind == TransitionKind.SLIDE_BOTTOM:
        return (0.0, height * remaining)
    raise ValueError(f"Not a slide transition: {kind!r}")


def _plan_slide(kind: TransitionKind, progress: float, ctx: FrameContext) -> FramePlan:
    offset = slide_offset(kind, progress, ctx.width, ctx.height)
    return FramePlan(ctx.params.background, (
        SpriteLayer(ctx.image_a, Transform()),
        SpriteLayer(ctx.image_b, Transform(position=offset)),
    ))


def plan_slide_left(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_slide(TransitionKind.SLIDE_LEFT, progress, ctx)


def plan_slide_right(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_slide(TransitionKind.SLIDE_RIGHT, progress, ctx)


def plan_slide_top(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_slide(TransitionKind.SLIDE_TOP, progress, ctx)


def plan_slide_bottom(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_slide(TransitionKind.SLIDE_BOTTOM, progress, ctx)
