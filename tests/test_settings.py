"""Tests for SettingsManager and the typed settings models."""
import inspect

import pytest

from core.settings import (
    CompositorSettings,
    ExportSettings,
    SettingsManager,
    clamp_frame_count,
    get_default_settings,
)
from versioning import APP_NAME, APP_ORGANIZATION


def test_settings_manager_initialization(settings_manager):
    """Test SettingsManager initialization."""
    assert settings_manager._settings.organizationName() == "Test"
    assert settings_manager._settings.applicationName() == "CompositorTest"


def test_default_scope_comes_from_versioning():
    params = inspect.signature(SettingsManager.__init__).parameters

    assert params["organization"].default == APP_ORGANIZATION
    assert params["application"].default == APP_NAME


def test_get_set_setting(settings_manager):
    """Test getting and setting values."""
    settings_manager.set("test.key", "test value")

    assert settings_manager.get("test.key") == "test value"
    assert settings_manager.contains("test.key")

    settings_manager.remove("test.key")
    assert not settings_manager.contains("test.key")


def test_default_values(settings_manager):
    """Test default values are set."""
    assert settings_manager.contains("canvas.width")
    assert settings_manager.contains("workers.compute")
    assert settings_manager.contains("transitions")
    assert settings_manager.contains("export")


def test_settings_changed_signal(settings_manager, qtbot):
    with qtbot.waitSignal(settings_manager.settings_changed, timeout=1000) as blocker:
        settings_manager.set("canvas.width", 640)

    assert blocker.args == ["canvas.width", 640]


def test_on_changed_handler(settings_manager):
    """Test change notification handler."""
    seen = []
    settings_manager.on_changed("canvas.height", lambda new, old: seen.append((new, old)))

    settings_manager.set("canvas.height", 300)

    assert seen and seen[0][0] == 300


def test_handler_errors_do_not_propagate(settings_manager):
    def bad_handler(new, old):
        raise RuntimeError("handler failed")

    settings_manager.on_changed("canvas.width", bad_handler)
    settings_manager.set("canvas.width", 10)

    assert int(settings_manager.get("canvas.width")) == 10


def test_reset_to_defaults_emits_wildcard(settings_manager, qtbot):
    settings_manager.set("canvas.width", 1)

    with qtbot.waitSignal(settings_manager.settings_changed, timeout=1000) as blocker:
        settings_manager.reset_to_defaults()

    assert blocker.args[0] == '*'
    assert int(settings_manager.get("canvas.width")) == 1200


def test_sections_round_trip(settings_manager):
    transitions = settings_manager.get_section("transitions")
    transitions["type"] = "Ring"
    settings_manager.set_section("transitions", transitions)

    assert settings_manager.get_section("transitions")["type"] == "Ring"


def test_get_bool_normalizes_strings(settings_manager):
    settings_manager.set("canvas.use_lanczos", "yes")

    assert settings_manager.get_bool("canvas.use_lanczos") is True
    assert SettingsManager.to_bool("off", True) is False
    assert SettingsManager.to_bool("maybe", True) is True


def test_default_settings_are_copies():
    defaults = get_default_settings()
    defaults["transitions"]["blur"]["max_radius"] = 1

    assert get_default_settings()["transitions"]["blur"]["max_radius"] == 40


def test_compositor_settings_from_defaults(settings_manager):
    settings = CompositorSettings.from_settings(settings_manager)

    assert (settings.canvas_width, settings.canvas_height) == (1200, 800)
    assert settings.background == (0, 0, 0)
    assert settings.transition_type == "CrossFade"
    assert settings.cube_strips == 96
    assert settings.ring_depth == 800.0


def test_compositor_settings_coerce_strings(settings_manager):
    settings_manager.set("canvas.width", "640")
    settings_manager.set("canvas.background", "10, 20, 30")
    settings_manager.set("workers.compute", "-3")

    settings = CompositorSettings.from_settings(settings_manager)

    assert settings.canvas_width == 640
    assert settings.background == (10, 20, 30)
    assert settings.workers == 0


def test_export_settings(settings_manager):
    export = settings_manager.get_section("export")
    export["frame_count"] = "5000"
    export["extension"] = ".jpg"
    settings_manager.set_section("export", export)

    settings = ExportSettings.from_settings(settings_manager)

    assert settings.frame_count == 1000
    assert settings.extension == "jpg"
    assert settings.prefix == "frame_"


@pytest.mark.parametrize("raw,expected", [(3, 10), (60, 60), (2000, 1000), ("abc", 60)])
def test_clamp_frame_count(raw, expected):
    assert clamp_frame_count(raw) == expected
