"""
Cube rotation and ring flythrough, drawn as textured meshes.
"""
from transitions.types import FrameContext, FramePlan, MeshLayer, TransitionKind


def _plan_meshes(kind: TransitionKind, progress: float, ctx: FrameContext) -> FramePlan:
    if ctx.projector is None:
        raise RuntimeError(f"{kind.name} needs a PerspectiveProjector")
    meshes = ctx.projector.project(kind, progress, ctx.width, ctx.height)
    layers = tuple(
        MeshLayer(ctx.image_a if mesh.source == "a" else ctx.image_b, mesh)
        for mesh in meshes
    )
    return FramePlan(ctx.params.background, layers)


def plan_cube_rotate(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_meshes(TransitionKind.CUBE_ROTATE, progress, ctx)


def plan_ring(progress: float, ctx: FrameContext) -> FramePlan:
    return _plan_meshes(TransitionKind.RING, progress, ctx)
