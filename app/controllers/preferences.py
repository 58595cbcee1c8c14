"""
Editor preferences backed by QSettings.

The core itself never touches QSettings; the controller receives an
``EditorPreferences`` value. ``load_preferences``/``save_preferences``
bridge that value to the platform settings store.
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Optional

from PyQt6.QtCore import QSettings

logger = logging.getLogger(__name__)

SETTINGS_ORGANIZATION = "Schemcap"
SETTINGS_APPLICATION = "Schematic Editor"
SETTINGS_GROUP = "editor"


@dataclass
class EditorPreferences:
    """Tunable defaults for the editing core."""

    grid: int = 8
    undo_depth: int = 500
    hit_tolerance: float = 5.0
    snap_to_grid: bool = True
    select_on_add: bool = True
    default_wire_length: int = 64


def _coerce_bool(value) -> bool:
    # QSettings hands back "true"/"false" strings for INI/registry backends
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _coerce(value, default):
    if isinstance(default, bool):
        return _coerce_bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def _validate(prefs: EditorPreferences) -> None:
    if prefs.grid <= 0:
        raise ValueError("grid must be positive")
    if prefs.undo_depth <= 0:
        raise ValueError("undo_depth must be positive")
    if prefs.hit_tolerance < 0:
        raise ValueError("hit_tolerance must not be negative")


def _open_settings(settings: Optional[QSettings]) -> QSettings:
    return settings if settings is not None else QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)


def load_preferences(settings: Optional[QSettings] = None) -> EditorPreferences:
    """
    Read preferences, falling back to the default for any missing or
    invalid value (invalid values are logged).
    """
    settings = _open_settings(settings)
    defaults = EditorPreferences()
    values = {}
    for f in fields(EditorPreferences):
        default = getattr(defaults, f.name)
        raw = settings.value(f"{SETTINGS_GROUP}/{f.name}", default)
        try:
            values[f.name] = _coerce(raw, default)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid preference %s=%r (%s), using %r", f.name, raw, e, default)
            values[f.name] = default

    prefs = EditorPreferences(**values)
    try:
        _validate(prefs)
    except ValueError as e:
        logger.warning("Invalid preferences (%s), using defaults", e)
        return defaults
    return prefs


def save_preferences(prefs: EditorPreferences, settings: Optional[QSettings] = None) -> None:
    """
    Write preferences to the settings store.

    Raises:
        ValueError: If the preferences are out of range.
    """
    _validate(prefs)
    settings = _open_settings(settings)
    for name, value in asdict(prefs).items():
        settings.setValue(f"{SETTINGS_GROUP}/{name}", value)
