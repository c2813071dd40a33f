"""
Fly away - A spins and shrinks into the center, then B spins back out.
"""
from transitions.box_transition import centered_scale
from transitions.fade_transition import alpha_from
from transitions.types import FrameContext, FramePlan, SpriteLayer

# Degrees turned over each half
SPIN_DEGREES = 180.0


def plan_fly_away(progress: float, ctx: FrameContext) -> FramePlan:
    if progress <= 0.5:
        t = 2.0 * progress
        layer = SpriteLayer(ctx.image_a, centered_scale(
            ctx, 1.0 - t, opacity=alpha_from(1.0 - t), rotation=SPIN_DEGREES * t))
    else:
        t = 2.0 * progress - 1.0
        layer = SpriteLayer(ctx.image_b, centered_scale(
            ctx, t, opacity=alpha_from(t), rotation=-SPIN_DEGREES * (1.0 - t)))
    return FramePlan(ctx.params.background, (layer,))
