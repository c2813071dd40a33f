"""Transition planning and compositing."""

from .types import (
    FrameContext,
    FramePlan,
    MeshLayer,
    SpriteLayer,
    Transform,
    TransitionKind,
    TransitionParams,
)
from .compositor import PLANNERS, TransitionCompositor, clamp_progress

__all__ = [
    'FrameContext',
    'FramePlan',
    'MeshLayer',
    'SpriteLayer',
    'Transform',
    'TransitionKind',
    'TransitionParams',
    'PLANNERS',
    'TransitionCompositor',
    'clamp_progress',
]
