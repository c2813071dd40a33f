"""CPU rendering primitives: rasters, canvas and pixel processors."""

from .pixel_buffer import PixelBuffer
from .canvas import Canvas
from .luma_processor import LumaCache, LumaProcessor
from .blur_processor import BlurProcessor
from .perspective_projector import PerspectiveProjector, ProjectedMesh
from .sequence_renderer import RenderedFrame, SequenceRenderer

__all__ = [
    'PixelBuffer',
    'Canvas',
    'LumaCache',
    'LumaProcessor',
    'BlurProcessor',
    'PerspectiveProjector',
    'ProjectedMesh',
    'RenderedFrame',
    'SequenceRenderer',
]
