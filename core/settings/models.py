"""
Typed views over the persisted settings.

QSettings returns strings for scalar values stored in INI files, so every
field is coerced here and clamped to a sane range before reaching the
compositor.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple

from core.logging.logger import get_logger

logger = get_logger(__name__)

MIN_FRAME_COUNT = 10
MAX_FRAME_COUNT = 1000


def _as_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_rgb(value: Any, default: Tuple[int, int, int]) -> Tuple[int, int, int]:
    if isinstance(value, str):
        value = [part for part in value.replace(",", " ").split() if part]
    try:
        r, g, b = (max(0, min(255, _as_int(c, -1))) for c in list(value)[:3])
    except (TypeError, ValueError):
        return default
    return (r, g, b)


def _section(settings, name: str) -> Mapping[str, Any]:
    value = settings.get_section(name, {})
    return value if isinstance(value, Mapping) else {}


def clamp_frame_count(value: Any) -> int:
    """Bound an export frame count to [MIN_FRAME_COUNT, MAX_FRAME_COUNT]."""
    count = _as_int(value, 60)
    clamped = max(MIN_FRAME_COUNT, min(MAX_FRAME_COUNT, count))
    if clamped != count:
        logger.warning("[FALLBACK] Frame count %s out of range, using %d", value, clamped)
    return clamped


@dataclass
class CompositorSettings:
    """Canvas, worker pool and per-effect tunables."""
    canvas_width: int = 1200
    canvas_height: int = 800
    background: Tuple[int, int, int] = (0, 0, 0)
    use_lanczos: bool = False
    workers: int = 0
    transition_type: str = "CrossFade"
    blur_max_radius: float = 40.0
    cube_strips: int = 96
    cube_fov: float = 800.0
    ring_radius: float = 1200.0
    ring_depth: float = 800.0

    @classmethod
    def from_settings(cls, settings) -> "CompositorSettings":
        """Build from a SettingsManager, falling back to defaults per field."""
        d = cls()
        transitions = _section(settings, 'transitions')
        blur = transitions.get('blur') or {}
        cube = transitions.get('cube') or {}
        ring = transitions.get('ring') or {}

        return cls(
            canvas_width=max(1, _as_int(settings.get('canvas.width', d.canvas_width), d.canvas_width)),
            canvas_height=max(1, _as_int(settings.get('canvas.height', d.canvas_height), d.canvas_height)),
            background=_as_rgb(settings.get('canvas.background', d.background), d.background),
            use_lanczos=settings.get_bool('canvas.use_lanczos', d.use_lanczos),
            workers=max(0, _as_int(settings.get('workers.compute', d.workers), d.workers)),
            transition_type=str(transitions.get('type') or d.transition_type),
            blur_max_radius=max(0.0, _as_float(blur.get('max_radius'), d.blur_max_radius)),
            cube_strips=max(1, _as_int(cube.get('strips'), d.cube_strips)),
            cube_fov=max(1.0, _as_float(cube.get('fov'), d.cube_fov)),
            ring_radius=max(0.0, _as_float(ring.get('radius'), d.ring_radius)),
            ring_depth=max(1.0, _as_float(ring.get('depth'), d.ring_depth)),
        )


@dataclass
class ExportSettings:
    """Sequence export options consumed by the CLI."""
    frame_count: int = 60
    directory: str = "frames"
    prefix: str = "frame_"
    extension: str = "png"

    @classmethod
    def from_settings(cls, settings) -> "ExportSettings":
        d = cls()
        export = _section(settings, 'export')
        return cls(
            frame_count=clamp_frame_count(export.get('frame_count', d.frame_count)),
            directory=str(export.get('directory') or d.directory),
            prefix=str(export.get('prefix', d.prefix)),
            extension=str(export.get('extension') or d.extension).lstrip('.'),
        )
