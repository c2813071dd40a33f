"""
Luma wipe - B appears brightest-first over A.

Works on the canvas-fitted sources, so both endpoints match the other
transitions when A and B differ in size.
"""
from transitions.types import FrameContext, FramePlan, SpriteLayer, Transform


def plan_luma_wipe(progress: float, ctx: FrameContext) -> FramePlan:
    if ctx.luma is None:
        raise RuntimeError("Luma wipe needs a LumaProcessor")
    wiped = ctx.luma.wipe(ctx.fitted_a, ctx.fitted_b, progress)
    if wiped.is_empty:
        return FramePlan(ctx.params.background)
    return FramePlan(ctx.params.background, (
        SpriteLayer(wiped.to_qimage(), Transform()),
    ))
