"""
Settings manager implementation for the transition compositor.

Uses QSettings for persistent storage. Nested sections ('transitions',
'export') are stored as whole maps and merged with the canonical defaults on
startup so new keys appear without overwriting user choices.
"""
from typing import Any, Callable, Dict, List, Mapping
import copy
import threading
from PySide6.QtCore import QSettings, QObject, Signal
from core.logging.logger import get_logger, is_verbose_logging
from versioning import APP_NAME, APP_ORGANIZATION

logger = get_logger('SettingsManager')


_DEFAULTS: Dict[str, Any] = {
    # Logical render surface, fixed for a session
    'canvas.width': 1200,
    'canvas.height': 800,
    'canvas.background': [0, 0, 0],
    # Source-to-canvas fitting: Qt smooth scaling or PIL Lanczos
    'canvas.use_lanczos': False,

    # 0 = one worker per CPU
    'workers.compute': 0,

    'transitions': {
        'type': 'CrossFade',
        'blur': {
            'max_radius': 40,
        },
        'cube': {
            'strips': 96,
            'fov': 800.0,
        },
        'ring': {
            'radius': 1200.0,
            'depth': 800.0,
        },
    },

    'export': {
        'frame_count': 60,
        'directory': 'frames',
        'prefix': 'frame_',
        'extension': 'png',
    },
}

# Sections stored as maps and merged key-by-key with defaults
_SECTION_KEYS = ('transitions', 'export')


def get_default_settings() -> Dict[str, Any]:
    """Return a deep copy of the canonical defaults."""
    return copy.deepcopy(_DEFAULTS)


def _merge_missing(existing: Mapping[str, Any], defaults: Mapping[str, Any]) -> tuple:
    """Fill keys missing from ``existing`` (recursively); return (merged, changed)."""
    merged = dict(existing)
    changed = False
    for key, value in defaults.items():
        current = merged.get(key)
        if key not in merged:
            merged[key] = copy.deepcopy(value)
            changed = True
        elif isinstance(value, Mapping) and isinstance(current, Mapping):
            sub, sub_changed = _merge_missing(current, value)
            merged[key] = sub
            changed = changed or sub_changed
    return merged, changed


class SettingsManager(QObject):
    """
    Centralized settings management for the compositor.

    Uses QSettings for persistent storage with organization/application name.
    Thread-safe with change notifications.
    """

    # Signal emitted when settings change
    settings_changed = Signal(str, object)  # key, new_value

    def __init__(self, organization: str = APP_ORGANIZATION,
                 application: str = APP_NAME):
        """
        Initialize the settings manager.

        Args:
            organization: Organization name for QSettings
            application: Application name for QSettings
        """
        super().__init__()

        self._settings = QSettings(organization, application)
        self._lock = threading.RLock()
        self._change_handlers: Dict[str, List[Callable]] = {}

        self._set_defaults()

        logger.info("SettingsManager initialized (%s/%s)", organization, application)

    def _set_defaults(self) -> None:
        """Set default values if not already present."""
        with self._lock:
            for key, value in _DEFAULTS.items():
                if key in _SECTION_KEYS:
                    self._ensure_section_defaults(key, value)
                elif not self._settings.contains(key):
                    self._settings.setValue(key, copy.deepcopy(value))

    def _ensure_section_defaults(self, section: str, defaults: Mapping[str, Any]) -> None:
        """Merge a stored section map with its defaults without losing user values."""
        raw = self._settings.value(section, None)
        if isinstance(raw, Mapping):
            merged, changed = _merge_missing(raw, defaults)
        else:
            merged, changed = copy.deepcopy(dict(defaults)), True
        if changed:
            self._settings.setValue(section, merged)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key in dot notation (e.g., 'canvas.width')
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        with self._lock:
            return self._settings.value(key, default)

    @staticmethod
    def to_bool(value: Any, default: bool = False) -> bool:
        """Normalize a stored setting value to bool.

        Accepts common string forms ("true", "1", "yes", "on") as True and
        ("false", "0", "no", "off") as False.
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            v = value.strip().lower()
            if v in ("true", "1", "yes", "on"):
                return True
            if v in ("false", "0", "no", "off"):
                return False
            return default
        if value is None:
            return default
        return bool(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Convenience wrapper around get() that normalizes to bool."""
        return self.to_bool(self.get(key, default), default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a setting value.

        Args:
            key: Setting key in dot notation
            value: Value to set
        """
        with self._lock:
            old_value = self._settings.value(key)
            self._settings.setValue(key, value)

            self.settings_changed.emit(key, value)

            for handler in self._change_handlers.get(key, []):
                try:
                    handler(value, old_value)
                except Exception as e:
                    logger.error(f"Error in change handler for {key}: {e}")

        if is_verbose_logging():
            logger.debug("Setting changed: %s: %r -> %r", key, old_value, value)
        else:
            logger.debug("Setting changed: %s", key)

    def on_changed(self, key: str, handler: Callable[[Any, Any], None]) -> None:
        """
        Register a handler for when a specific setting changes.

        Args:
            key: Setting key to watch
            handler: Callback function(new_value, old_value)
        """
        with self._lock:
            self._change_handlers.setdefault(key, []).append(handler)
        logger.debug(f"Registered change handler for {key}")

    def reset_to_defaults(self) -> None:
        """Reset all settings to default values."""
        with self._lock:
            self._settings.clear()
            for key, value in get_default_settings().items():
                self._settings.setValue(key, value)
            self._settings.sync()

        logger.info("Settings reset to defaults")
        self.settings_changed.emit('*', None)

    def contains(self, key: str) -> bool:
        """Check if a setting key exists."""
        with self._lock:
            return self._settings.contains(key)

    def remove(self, key: str) -> None:
        """Remove a setting key."""
        with self._lock:
            self._settings.remove(key)
        logger.debug(f"Removed setting: {key}")

    def clear(self) -> None:
        """Clear all settings (use with caution)."""
        with self._lock:
            self._settings.clear()
        logger.warning("All settings cleared")

    def get_section(self, section: str, default: Any = None) -> Any:
        """Return a whole section value (e.g. 'transitions', 'export').

        Mapping-backed sections are normalised to plain dicts.
        """
        with self._lock:
            value = self._settings.value(section, default)

        if isinstance(value, Mapping):
            return {k: dict(v) if isinstance(v, Mapping) else v for k, v in value.items()}
        return value

    def set_section(self, section: str, value: Mapping[str, Any]) -> None:
        """Set a whole section value in one shot, with normal change notifications."""
        self.set(section, dict(value))
