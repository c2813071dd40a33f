"""
Pseudo-3D mesh projection for the cube-rotation and ring transitions.

Meshes are built fresh from progress and canvas size on every call. Each
mesh is a list of textured quads ("strips") whose vertices carry screen
positions after perspective division plus normalized texture coordinates.
Meshes come back farther-first, so painting them in order gives correct
occlusion without a depth buffer.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from core.logging.logger import get_logger, is_verbose_logging

logger = get_logger(__name__)

DEFAULT_STRIPS = 96
DEFAULT_FOV = 800.0
DEFAULT_RING_RADIUS = 1200.0
DEFAULT_RING_DEPTH = 800.0

SHADE_AMBIENT = 0.6
SHADE_DIFFUSE = 0.4

# Smallest perspective denominator allowed before division
_MIN_DEPTH_DENOMINATOR = 1e-3


@dataclass(frozen=True)
class Vertex:
    """Projected screen position plus texture coordinate in [0, 1]."""
    x: float
    y: float
    u: float
    v: float


Triangle = Tuple[Vertex, Vertex, Vertex]


@dataclass(frozen=True)
class MeshStrip:
    """Textured quad: top-left, top-right, bottom-right, bottom-left."""
    corners: Tuple[Vertex, Vertex, Vertex, Vertex]

    def triangles(self) -> Tuple[Triangle, Triangle]:
        tl, tr, br, bl = self.corners
        return (tl, tr, br), (tl, br, bl)

    @property
    def texture_rect(self) -> Tuple[float, float, float, float]:
        """``(u0, v0, u1, v1)`` covered by this strip."""
        tl, _, br, _ = self.corners
        return (tl.u, tl.v, br.u, br.v)


@dataclass(frozen=True)
class ProjectedMesh:
    """One shaded, textured face of a perspective effect."""
    source: str                     # "a" or "b"
    strips: Tuple[MeshStrip, ...]
    shade: float                    # 1.0 = fully lit
    depth: float                    # representative z, larger is farther

    @property
    def triangles(self) -> List[Triangle]:
        return [tri for strip in self.strips for tri in strip.triangles()]


def face_shade(offset_radians: float) -> float:
    """Lighting factor for a face turned ``offset`` away from the viewer."""
    return SHADE_AMBIENT + SHADE_DIFFUSE * max(0.0, math.cos(offset_radians))


def perspective_scale(depth_constant: float, z: float) -> float:
    """``d / (d + z)`` with the denominator kept positive."""
    return depth_constant / max(_MIN_DEPTH_DENOMINATOR, depth_constant + z)


def quad_homography(src: Sequence[Tuple[float, float]],
                    dst: Sequence[Tuple[float, float]]) -> Optional[np.ndarray]:
    """
    Solve the projective map taking four ``src`` points onto ``dst``.

    Returns:
        3x3 matrix ``H`` in row-vector form: ``[x', y', w] = [x, y, 1] @ H``,
        matching the ``QTransform(m11, m12, m13, m21, ...)`` layout.
        ``None`` when the quad is degenerate.
    """
    rows = []
    rhs = []
    for (x, y), (X, Y) in zip(src, dst):
        rows.append([x, y, 1.0, 0.0, 0.0, 0.0, -x * X, -y * X])
        rhs.append(X)
        rows.append([0.0, 0.0, 0.0, x, y, 1.0, -x * Y, -y * Y])
        rhs.append(Y)
    system = np.array(rows, dtype=np.float64)
    if np.linalg.matrix_rank(system) < 8:
        return None
    try:
        h = np.linalg.solve(system, np.array(rhs, dtype=np.float64))
    except np.linalg.LinAlgError:
        return None
    column_form = np.array([
        [h[0], h[1], h[2]],
        [h[3], h[4], h[5]],
        [h[6], h[7], 1.0],
    ])
    return column_form.T


class PerspectiveProjector:
    """Builds depth-ordered meshes for CubeRotate and Ring."""

    def __init__(self, strips: int = DEFAULT_STRIPS, fov: float = DEFAULT_FOV,
                 ring_radius: float = DEFAULT_RING_RADIUS,
                 ring_depth: float = DEFAULT_RING_DEPTH):
        self.strips = max(1, int(strips))
        self.fov = float(fov)
        self.ring_radius = float(ring_radius)
        self.ring_depth = float(ring_depth)

    # --- cube -------------------------------------------------------------
    def cube_angle(self, progress: float) -> float:
        """Rotation in radians, 0 -> 90 degrees."""
        return math.radians(90.0 * max(0.0, min(1.0, progress)))

    def cube_face_depths(self, progress: float, width: float) -> Tuple[float, float]:
        """Representative z of the front (A) and side (B) face centers."""
        angle = self.cube_angle(progress)
        half = width / 2.0
        # Front center sits at (dx=0, dz=-half); side center at (dx=half, dz=0)
        front = half - half * math.cos(angle)
        side = half - half * math.sin(angle)
        return front, side

    def _cube_point(self, x: float, z: float, y: float, angle: float,
                    width: float, height: float) -> Tuple[float, float]:
        """Rotate ``(x, z)`` about the cube center and project to screen."""
        half = width / 2.0
        dx = x - half
        dz = z - half
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        rx = dx * cos_a + dz * sin_a
        rz = -dx * sin_a + dz * cos_a
        depth = half + rz
        s = perspective_scale(self.fov, depth)
        return (half + rx * s, height / 2.0 + (y - height / 2.0) * s)

    def _cube_face(self, source: str, angle: float, width: float, height: float) -> Tuple[MeshStrip, ...]:
        strips = []
        for i in range(self.strips):
            u0 = i / self.strips
            u1 = (i + 1) / self.strips
            if source == "a":
                # Front face: z = 0, x runs across the canvas
                p0 = (u0 * width, 0.0)
                p1 = (u1 * width, 0.0)
            else:
                # Side face: hinged at the right edge, running into depth
                p0 = (width, u0 * width)
                p1 = (width, u1 * width)
            tl = self._cube_point(p0[0], p0[1], 0.0, angle, width, height)
            tr = self._cube_point(p1[0], p1[1], 0.0, angle, width, height)
            br = self._cube_point(p1[0], p1[1], height, angle, width, height)
            bl = self._cube_point(p0[0], p0[1], height, angle, width, height)
            strips.append(MeshStrip((
                Vertex(tl[0], tl[1], u0, 0.0),
                Vertex(tr[0], tr[1], u1, 0.0),
                Vertex(br[0], br[1], u1, 1.0),
                Vertex(bl[0], bl[1], u0, 1.0),
            )))
        return tuple(strips)

    def project_cube(self, progress: float, width: float, height: float) -> List[ProjectedMesh]:
        angle = self.cube_angle(progress)
        front_depth, side_depth = self.cube_face_depths(progress, width)
        meshes = [
            ProjectedMesh("a", self._cube_face("a", angle, width, height),
                          face_shade(angle), front_depth),
            ProjectedMesh("b", self._cube_face("b", angle, width, height),
                          face_shade(math.pi / 2.0 - angle), side_depth),
        ]
        return _depth_sorted(meshes)

    # --- ring -------------------------------------------------------------
    def ring_placement(self, angle_degrees: float, side: int) -> Tuple[float, float, float]:
        """``(x, z, scale)`` for an image at ``angle`` along the quarter arc."""
        a = math.radians(angle_degrees)
        r = self.ring_radius
        x = side * (r - r * math.cos(a))
        z = r * math.sin(a)
        return x, z, perspective_scale(self.ring_depth, z)

    def _ring_quad(self, source: str, angle_degrees: float, side: int,
                   width: float, height: float) -> ProjectedMesh:
        x, z, s = self.ring_placement(angle_degrees, side)
        cx = width / 2.0 + x * s
        cy = height / 2.0
        hw = width * s / 2.0
        hh = height * s / 2.0
        strip = MeshStrip((
            Vertex(cx - hw, cy - hh, 0.0, 0.0),
            Vertex(cx + hw, cy - hh, 1.0, 0.0),
            Vertex(cx + hw, cy + hh, 1.0, 1.0),
            Vertex(cx - hw, cy + hh, 0.0, 1.0),
        ))
        return ProjectedMesh(source, (strip,), 1.0, z)

    def project_ring(self, progress: float, width: float, height: float) -> List[ProjectedMesh]:
        p = max(0.0, min(1.0, progress))
        meshes = [
            self._ring_quad("a", 90.0 * p, -1, width, height),
            self._ring_quad("b", 90.0 * (1.0 - p), 1, width, height),
        ]
        return _depth_sorted(meshes)

    # --- dispatch ---------------------------------------------------------
    def project(self, kind, progress: float, width: float, height: float) -> List[ProjectedMesh]:
        """
        Build meshes for a perspective transition.

        Args:
            kind: TransitionKind.CUBE_ROTATE or TransitionKind.RING
            progress: Transition progress in [0, 1]
            width: Canvas width
            height: Canvas height

        Returns:
            Meshes ordered farther-first; empty for degenerate canvases
        """
        if width < 1 or height < 1:
            return []
        name = getattr(kind, "value", kind)
        if name == "cube_rotate":
            meshes = self.project_cube(progress, width, height)
        elif name == "ring":
            meshes = self.project_ring(progress, width, height)
        else:
            raise ValueError(f"Not a perspective transition: {kind!r}")
        if is_verbose_logging():
            logger.debug("Projected %s at p=%.3f: order=%s depths=%s", name, progress,
                         [m.source for m in meshes], [round(m.depth, 2) for m in meshes])
        return meshes


def _depth_sorted(meshes: List[ProjectedMesh]) -> List[ProjectedMesh]:
    # Stable: equal depths (to 9 places) keep build order, A before B
    return sorted(meshes, key=lambda m: -round(m.depth, 9))
