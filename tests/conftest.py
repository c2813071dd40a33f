"""
Shared pytest fixtures for compositor tests.
"""
import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope='session')
def qt_app():
    """Create QApplication instance for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
    # Don't quit - causes issues with pytest


@pytest.fixture
def settings_manager(qt_app):
    """Create SettingsManager instance for testing."""
    from core.settings import SettingsManager
    manager = SettingsManager(organization="Test", application="CompositorTest")
    yield manager
    # Clear test settings
    manager.clear()


@pytest.fixture
def thread_manager():
    """Create ThreadManager instance for testing."""
    from core.threading.manager import ThreadManager
    manager = ThreadManager(max_workers=4)
    yield manager
    manager.shutdown(wait=True)


@pytest.fixture
def solid_image():
    """Factory for single-color PixelBuffers."""
    from rendering.pixel_buffer import PixelBuffer

    def _make(width, height, color):
        return PixelBuffer.solid(width, height, color)

    return _make


@pytest.fixture
def compositor(qt_app, thread_manager):
    """Small compositor sharing the test thread pool."""
    from transitions.compositor import TransitionCompositor
    comp = TransitionCompositor(64, 48, thread_manager=thread_manager)
    yield comp
    comp.shutdown()
