"""
Value types shared by the transition planners and the compositor.

Everything here is immutable and rebuilt on every frame: a planner turns
``(kind, progress, dimensions)`` into a FramePlan, the compositor paints it,
and nothing survives into the next call.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from PySide6.QtGui import QImage, QTransform

from rendering.blur_processor import BlurProcessor
from rendering.luma_processor import LumaProcessor
from rendering.perspective_projector import (
    DEFAULT_FOV,
    DEFAULT_RING_DEPTH,
    DEFAULT_RING_RADIUS,
    DEFAULT_STRIPS,
    PerspectiveProjector,
    ProjectedMesh,
)
from rendering.pixel_buffer import PixelBuffer

RGB = Tuple[int, int, int]

# Scales below this are treated as collapsed
_DEGENERATE_SCALE = 1e-6


class TransitionKind(Enum):
    """The sixteen supported transitions."""
    SLIDE_LEFT = "slide_left"
    SLIDE_RIGHT = "slide_right"
    SLIDE_TOP = "slide_top"
    SLIDE_BOTTOM = "slide_bottom"
    BOX_IN = "box_in"
    BOX_OUT = "box_out"
    FADE_TO_BLACK = "fade_to_black"
    CROSS_FADE = "cross_fade"
    PAGE_TURN_HORIZONTAL = "page_turn_horizontal"
    PAGE_TURN_VERTICAL = "page_turn_vertical"
    SHUTTER_OPEN = "shutter_open"
    BLUR_FADE = "blur_fade"
    CUBE_ROTATE = "cube_rotate"
    RING = "ring"
    LUMA_WIPE = "luma_wipe"
    FLY_AWAY = "fly_away"

    @property
    def is_perspective(self) -> bool:
        return self in (TransitionKind.CUBE_ROTATE, TransitionKind.RING)

    @classmethod
    def from_name(cls, name: Union[str, "TransitionKind"]) -> "TransitionKind":
        """Parse an enum value, member name or CamelCase label.

        ``"cross_fade"``, ``"CROSS_FADE"`` and ``"CrossFade"`` all resolve to
        ``CROSS_FADE``.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().replace("-", "_").replace(" ", "_")
        normalized = "".join(ch for ch in key.lower() if ch != "_")
        for kind in cls:
            if normalized == kind.value.replace("_", ""):
                return kind
        raise ValueError(f"Unknown transition: {name!r}")


@dataclass(frozen=True)
class Transform:
    """
    Affine placement of one image for one frame.

    A point is mapped by ``translate(position) * rotate(rotation) *
    scale(sx, sy) * translate(-origin)``, the same order QTransform builds.
    Rotation is in degrees, clockwise on screen (y points down).
    """
    origin: Tuple[float, float] = (0.0, 0.0)
    position: Tuple[float, float] = (0.0, 0.0)
    scale: Tuple[float, float] = (1.0, 1.0)
    rotation: float = 0.0
    opacity: int = 255

    @property
    def is_degenerate(self) -> bool:
        """True when nothing would be drawn (collapsed axis or invisible)."""
        sx, sy = self.scale
        return abs(sx) < _DEGENERATE_SCALE or abs(sy) < _DEGENERATE_SCALE or self.opacity <= 0

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        ox, oy = self.origin
        sx, sy = self.scale
        px, py = (x - ox) * sx, (y - oy) * sy
        if self.rotation:
            a = math.radians(self.rotation)
            cos_a, sin_a = math.cos(a), math.sin(a)
            px, py = px * cos_a - py * sin_a, px * sin_a + py * cos_a
        return (px + self.position[0], py + self.position[1])

    def corners(self, width: float, height: float) -> List[Tuple[float, float]]:
        """Mapped top-left, top-right, bottom-right, bottom-left of a w x h image."""
        return [
            self.map_point(0.0, 0.0),
            self.map_point(width, 0.0),
            self.map_point(width, height),
            self.map_point(0.0, height),
        ]

    def to_qtransform(self) -> QTransform:
        t = QTransform()
        t.translate(self.position[0], self.position[1])
        if self.rotation:
            t.rotate(self.rotation)
        t.scale(self.scale[0], self.scale[1])
        t.translate(-self.origin[0], -self.origin[1])
        return t


@dataclass(frozen=True)
class TransitionParams:
    """Per-effect tunables."""
    blur_max_radius: float = 40.0
    cube_strips: int = DEFAULT_STRIPS
    cube_fov: float = DEFAULT_FOV
    ring_radius: float = DEFAULT_RING_RADIUS
    ring_depth: float = DEFAULT_RING_DEPTH
    background: RGB = (0, 0, 0)


@dataclass(frozen=True)
class SpriteLayer:
    """An image drawn with an affine Transform."""
    image: QImage
    transform: Transform


@dataclass(frozen=True)
class MeshLayer:
    """An image textured onto a projected mesh."""
    image: QImage
    mesh: ProjectedMesh


Layer = Union[SpriteLayer, MeshLayer]


@dataclass(frozen=True)
class FramePlan:
    """Background color plus layers in draw order (first = bottom)."""
    background: RGB
    layers: Tuple[Layer, ...] = ()


@dataclass
class FrameContext:
    """
    Inputs available to a planner for one frame.

    ``image_a``/``image_b`` are the sources already fitted to the canvas
    (QImage for drawing); ``fitted_a``/``fitted_b`` hold the same pixels for
    the pixel processors.
    """
    width: int
    height: int
    image_a: QImage
    image_b: QImage
    fitted_a: PixelBuffer
    fitted_b: PixelBuffer
    params: TransitionParams = field(default_factory=TransitionParams)
    luma: Optional[LumaProcessor] = None
    blur: Optional[BlurProcessor] = None
    projector: Optional[PerspectiveProjector] = None

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    def fill_canvas(self, size: Tuple[int, int]) -> Transform:
        """Transform stretching an image of ``size`` over the whole canvas."""
        w, h = size
        return Transform(scale=(self.width / max(1, w), self.height / max(1, h)))
