"""
Shutter open - A collapses toward its right edge while B slides in from the
left behind it.
"""
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def plan_shutter_open(progress: float, ctx: FrameContext) -> FramePlan:
    right_edge = (float(ctx.width), 0.0)
    shutter = Transform(origin=right_edge, position=right_edge, scale=(1.0 - progress, 1.0))
    incoming = Transform(position=(-ctx.width * (1.0 - progress), 0.0))
    return FramePlan(ctx.params.background, (
        SpriteLayer(ctx.image_b, incoming),
        SpriteLayer(ctx.image_a, shutter),
    ))
