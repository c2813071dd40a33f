"""Persistent settings and typed settings models."""

from .settings_manager import SettingsManager, get_default_settings
from .models import CompositorSettings, ExportSettings, clamp_frame_count

__all__ = [
    'SettingsManager',
    'get_default_settings',
    'CompositorSettings',
    'ExportSettings',
    'clamp_frame_count',
]
