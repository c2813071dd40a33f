"""
Tests for TransitionCompositor.
"""
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from core.settings.models import CompositorSettings
from rendering.pixel_buffer import PixelBuffer
from transitions.compositor import PLANNERS, TransitionCompositor, clamp_progress
from transitions.types import TransitionKind

W, H = 64, 48
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)

FLAT_KINDS = [kind for kind in TransitionKind if not kind.is_perspective]


def _is_solid(buffer, color):
    return bool(np.all(buffer.pixels == np.array(color, dtype=np.uint8)))


@pytest.fixture
def red_blue(solid_image):
    return solid_image(W, H, RED), solid_image(W, H, BLUE)


@pytest.mark.parametrize("kind", FLAT_KINDS, ids=lambda k: k.value)
def test_endpoints_reproduce_sources(compositor, red_blue, kind):
    """Progress 0 shows A exactly, progress 1 shows B exactly."""
    a, b = red_blue

    start = compositor.composite(kind, 0.0, a, b)
    end = compositor.composite(kind, 1.0, a, b)

    assert start.size == (W, H)
    assert _is_solid(start, RED)
    assert _is_solid(end, BLUE)


@pytest.mark.parametrize("kind", list(TransitionKind), ids=lambda k: k.value)
@pytest.mark.parametrize("progress", [0.0, 0.3, 0.5, 0.8, 1.0])
def test_every_frame_is_opaque_canvas(compositor, red_blue, kind, progress):
    a, b = red_blue

    frame = compositor.composite(kind, progress, a, b)

    assert frame.size == (W, H)
    assert np.all(frame.pixels[..., 3] == 255)


def test_fade_to_black_midpoint_is_background(compositor, red_blue):
    frame = compositor.composite(TransitionKind.FADE_TO_BLACK, 0.5, *red_blue)

    assert _is_solid(frame, (0, 0, 0, 255))


def test_slide_left_halfway_splits_canvas(compositor, red_blue):
    frame = compositor.composite(TransitionKind.SLIDE_LEFT, 0.5, *red_blue)

    assert frame.pixel(W // 4, H // 2) == RED
    assert frame.pixel(3 * W // 4, H // 2) == BLUE


def test_cross_fade_blends(compositor, red_blue):
    r, g, b, a = compositor.composite(TransitionKind.CROSS_FADE, 0.5, *red_blue).pixel(10, 10)

    assert 120 <= r <= 135
    assert 120 <= b <= 135
    assert a == 255


def test_kind_accepts_names(compositor, red_blue):
    frame = compositor.composite("CrossFade", 1.0, *red_blue)

    assert _is_solid(frame, BLUE)


def test_missing_input_draws_available_image(compositor, red_blue):
    a, b = red_blue

    assert _is_solid(compositor.composite(TransitionKind.CUBE_ROTATE, 0.5, None, b), BLUE)
    assert _is_solid(compositor.composite(TransitionKind.SLIDE_TOP, 0.5, a, PixelBuffer.empty()), RED)


def test_both_inputs_missing_gives_background(qt_app, thread_manager):
    from transitions.types import TransitionParams
    comp = TransitionCompositor(W, H, params=TransitionParams(background=(9, 8, 7)),
                                thread_manager=thread_manager)

    frame = comp.composite(TransitionKind.RING, 0.5, None, None)

    assert _is_solid(frame, (9, 8, 7, 255))


def test_degenerate_canvas_returns_empty(qt_app, thread_manager, red_blue):
    comp = TransitionCompositor(0, 10, thread_manager=thread_manager)

    assert comp.composite(TransitionKind.CROSS_FADE, 0.5, *red_blue).is_empty


@pytest.mark.parametrize("raw,expected", [(-1.0, 0.0), (2.5, 1.0), (float("nan"), 0.0), ("x", 0.0), (0.25, 0.25)])
def test_clamp_progress(raw, expected):
    assert clamp_progress(raw) == expected


def test_out_of_range_progress_is_clamped(compositor, red_blue):
    assert _is_solid(compositor.composite(TransitionKind.CROSS_FADE, 7.0, *red_blue), BLUE)
    assert _is_solid(compositor.composite(TransitionKind.CROSS_FADE, float("nan"), *red_blue), RED)


def test_unknown_kind_falls_back(compositor, red_blue):
    frame = compositor.composite("Dissolve", 0.2, *red_blue)

    assert _is_solid(frame, RED)


def test_planner_failure_falls_back(compositor, red_blue, monkeypatch):
    def boom(progress, ctx):
        raise RuntimeError("planner exploded")

    monkeypatch.setitem(PLANNERS, TransitionKind.BOX_IN, boom)

    assert _is_solid(compositor.composite(TransitionKind.BOX_IN, 0.9, *red_blue), BLUE)


def test_sources_are_fitted_to_canvas(compositor, solid_image):
    a = solid_image(10, 10, RED)
    b = solid_image(300, 20, BLUE)

    assert compositor.composite(TransitionKind.CROSS_FADE, 0.0, a, b).pixel(W // 2, H // 2) == RED
    assert compositor.composite(TransitionKind.CROSS_FADE, 1.0, a, b).pixel(W // 2, H // 2) == BLUE


def test_fitted_cache_tracks_current_pair(compositor, solid_image):
    first = (solid_image(W, H, RED), solid_image(W, H, BLUE))
    second = (solid_image(W, H, BLUE), solid_image(W, H, RED))

    compositor.composite(TransitionKind.CROSS_FADE, 0.5, *first)
    compositor.composite(TransitionKind.CROSS_FADE, 0.5, *second)

    assert set(compositor._fitted) == {second[0].serial, second[1].serial}


def test_luma_cache_rebuilt_for_new_incoming_image(compositor, solid_image):
    a = solid_image(W, H, RED)
    white = solid_image(W, H, (255, 255, 255))
    black = solid_image(W, H, (0, 0, 0))

    compositor.composite(TransitionKind.LUMA_WIPE, 0.5, a, white)
    assert compositor.luma_processor.cache.is_valid(white)

    frame = compositor.composite(TransitionKind.LUMA_WIPE, 0.5, a, black)
    assert compositor.luma_processor.cache.is_valid(black)
    assert _is_solid(frame, RED)


def _checkerboard(width, height, cell=8):
    ys, xs = np.mgrid[0:height, 0:width]
    on = ((xs // cell) + (ys // cell)) % 2 == 0
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[on] = (240, 240, 240, 255)
    pixels[~on] = (20, 60, 20, 255)
    return PixelBuffer(pixels)


@pytest.mark.parametrize("progress", [0.0, 1.0])
def test_luma_wipe_endpoints_with_mismatched_sizes(compositor, solid_image, progress):
    a = _checkerboard(W, H)
    b = solid_image(4, 4, BLUE)

    wiped = compositor.composite(TransitionKind.LUMA_WIPE, progress, a, b)
    faded = compositor.composite(TransitionKind.CROSS_FADE, progress, a, b)

    assert wiped.size == (W, H)
    assert np.array_equal(wiped.pixels, faded.pixels)
    if progress == 0.0:
        assert np.array_equal(wiped.pixels, a.pixels)


def test_single_image_frames_do_not_grow_fitted_cache(compositor, solid_image):
    for _ in range(20):
        compositor.composite(TransitionKind.CROSS_FADE, 0.5, PixelBuffer.empty(), solid_image(8, 8, BLUE))

    assert len(compositor._fitted) == 1


def test_concurrent_composites_are_consistent(compositor, red_blue):
    kinds = [TransitionKind.CROSS_FADE, TransitionKind.BLUR_FADE, TransitionKind.LUMA_WIPE] * 4

    with ThreadPoolExecutor(max_workers=4) as pool:
        frames = list(pool.map(lambda k: compositor.composite(k, 1.0, *red_blue), kinds))

    assert all(_is_solid(frame, BLUE) for frame in frames)


def test_from_settings(qt_app, thread_manager):
    settings = CompositorSettings(canvas_width=32, canvas_height=16, background=(1, 2, 3),
                                  cube_strips=12, ring_radius=500.0)

    comp = TransitionCompositor.from_settings(settings, thread_manager=thread_manager)

    assert (comp.width, comp.height) == (32, 16)
    assert comp.params.background == (1, 2, 3)
    assert comp.projector.strips == 12
    assert comp.projector.ring_radius == 500.0


def test_owned_pool_is_shut_down(qt_app):
    with TransitionCompositor(8, 8, workers=2) as comp:
        pool = comp.thread_manager
        assert pool.worker_count == 2
    assert pool.is_shutdown


def test_frames_rendered_counter(compositor, red_blue):
    compositor.composite(TransitionKind.RING, 0.5, *red_blue)
    compositor.composite(TransitionKind.RING, 0.6, *red_blue)

    assert compositor.frames_rendered == 2
