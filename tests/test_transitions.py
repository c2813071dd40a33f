"""
Tests for transition types and the per-effect planning functions.
"""
import pytest
from PySide6.QtCore import QPointF

from transitions.compositor import PLANNERS
from transitions.slide_transition import slide_offset
from transitions.types import MeshLayer, SpriteLayer, Transform, TransitionKind

W, H = 64, 48


@pytest.fixture
def plan(compositor, solid_image):
    a = solid_image(W, H, (255, 0, 0))
    b = solid_image(W, H, (0, 0, 255))

    def _plan(kind, progress):
        return compositor.plan(kind, progress, a, b)

    return _plan


def _corners(layer):
    return layer.transform.corners(W, H)


def test_sixteen_kinds_all_dispatched():
    assert len(TransitionKind) == 16
    assert set(PLANNERS) == set(TransitionKind)


@pytest.mark.parametrize("name", ["cross_fade", "CROSS_FADE", "CrossFade", "cross-fade", " crossfade "])
def test_kind_from_name(name):
    assert TransitionKind.from_name(name) is TransitionKind.CROSS_FADE


def test_kind_from_name_rejects_unknown():
    with pytest.raises(ValueError):
        TransitionKind.from_name("Dissolve")


def test_transform_rotation_is_clockwise_on_screen():
    t = Transform(rotation=90.0)
    x, y = t.map_point(1.0, 0.0)

    assert (x, y) == pytest.approx((0.0, 1.0))


def test_transform_matches_qtransform():
    t = Transform(origin=(10.0, 5.0), position=(30.0, 40.0), scale=(0.5, 2.0), rotation=33.0)
    qt = t.to_qtransform()

    for point in [(0.0, 0.0), (10.0, 5.0), (64.0, 48.0), (-3.0, 17.0)]:
        mapped = qt.map(QPointF(*point))
        assert (mapped.x(), mapped.y()) == pytest.approx(t.map_point(*point))


def test_transform_degenerate():
    assert Transform(scale=(0.0, 1.0)).is_degenerate
    assert Transform(opacity=0).is_degenerate
    assert not Transform().is_degenerate


@pytest.mark.parametrize("kind,expected", [
    (TransitionKind.SLIDE_LEFT, (W / 4, 0.0)),
    (TransitionKind.SLIDE_RIGHT, (-W / 4, 0.0)),
    (TransitionKind.SLIDE_TOP, (0.0, -H / 4)),
    (TransitionKind.SLIDE_BOTTOM, (0.0, H / 4)),
])
def test_slide_offsets(kind, expected):
    assert slide_offset(kind, 0.75, W, H) == pytest.approx(expected)


def test_slide_draws_a_then_moving_b(plan):
    layers = plan(TransitionKind.SLIDE_LEFT, 0.0).layers

    assert layers[0].transform == Transform()
    assert layers[1].transform.position == (W, 0.0)


def test_box_in_corners_at_half(plan):
    layers = plan(TransitionKind.BOX_IN, 0.5).layers

    assert len(layers) == 2
    flat = [c for corner in _corners(layers[1]) for c in corner]
    assert flat == pytest.approx(
        [W / 4, H / 4, 3 * W / 4, H / 4, 3 * W / 4, 3 * H / 4, W / 4, 3 * H / 4])


def test_box_out_shrinks_a_over_b(plan):
    layers = plan(TransitionKind.BOX_OUT, 0.25).layers

    assert layers[0].transform == Transform()
    assert layers[1].transform.scale == (0.75, 0.75)


def test_fade_to_black_phases(plan):
    first = plan(TransitionKind.FADE_TO_BLACK, 0.25).layers
    middle = plan(TransitionKind.FADE_TO_BLACK, 0.5).layers
    second = plan(TransitionKind.FADE_TO_BLACK, 0.75).layers

    assert len(first) == 1 and first[0].transform.opacity == 128
    assert middle[0].transform.is_degenerate
    assert len(second) == 1 and second[0].transform.opacity == 128


def test_cross_fade_opacity(plan):
    layers = plan(TransitionKind.CROSS_FADE, 0.2).layers

    assert layers[0].transform.opacity == 255
    assert layers[1].transform.opacity == 51


@pytest.mark.parametrize("kind,axis", [
    (TransitionKind.PAGE_TURN_HORIZONTAL, 0),
    (TransitionKind.PAGE_TURN_VERTICAL, 1),
])
def test_page_turn_folds_about_center(plan, kind, axis):
    folding = plan(kind, 0.25).layers
    unfolding = plan(kind, 0.9).layers

    assert len(folding) == 1 and len(unfolding) == 1
    assert folding[0].transform.scale[axis] == pytest.approx(0.5)
    assert folding[0].transform.scale[1 - axis] == 1.0
    assert unfolding[0].transform.scale[axis] == pytest.approx(0.8)
    assert folding[0].transform.map_point(W / 2, H / 2) == pytest.approx((W / 2, H / 2))


def test_shutter_collapses_toward_right_edge(plan):
    b_layer, a_layer = plan(TransitionKind.SHUTTER_OPEN, 0.5).layers

    assert _corners(a_layer)[0] == pytest.approx((W / 2, 0.0))
    assert _corners(a_layer)[2] == pytest.approx((W, H))
    assert b_layer.transform.position == pytest.approx((-W / 2, 0.0))


def test_fly_away_spins_and_fades(plan):
    outgoing = plan(TransitionKind.FLY_AWAY, 0.25).layers[0].transform
    incoming = plan(TransitionKind.FLY_AWAY, 0.75).layers[0].transform

    assert outgoing.scale == pytest.approx((0.5, 0.5))
    assert outgoing.rotation == pytest.approx(90.0)
    assert outgoing.opacity == 128
    assert incoming.rotation == pytest.approx(-90.0)
    assert incoming.opacity == 128


def test_blur_fade_layers(plan):
    ramp = plan(TransitionKind.BLUR_FADE, 0.2).layers
    hold = plan(TransitionKind.BLUR_FADE, 0.5).layers

    assert len(ramp) == 1
    assert ramp[0].image.width() == W // 4
    assert ramp[0].transform.scale == pytest.approx((4.0, 4.0))
    assert len(hold) == 2
    assert hold[0].transform.opacity + hold[1].transform.opacity == 255


def test_luma_wipe_single_layer(plan):
    layers = plan(TransitionKind.LUMA_WIPE, 0.5).layers

    assert len(layers) == 1
    assert isinstance(layers[0], SpriteLayer)
    assert layers[0].transform.scale == (1.0, 1.0)


@pytest.mark.parametrize("kind", [TransitionKind.CUBE_ROTATE, TransitionKind.RING])
def test_perspective_kinds_plan_meshes(plan, kind):
    layers = plan(kind, 0.3).layers

    assert len(layers) == 2
    assert all(isinstance(layer, MeshLayer) for layer in layers)
    assert {layer.mesh.source for layer in layers} == {"a", "b"}
