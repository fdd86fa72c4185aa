"""
Analytics utility functions.
Provides settings loading (YAML + presets) and the series colour generator used by the charts.
"""
from typing import Dict, Any, Iterable, Optional
import math
import os
import yaml

# filename used for the YAML settings file
SETTINGS_FILENAME = 'settings.yaml'

# golden angle in degrees: successive indices land far apart on the hue wheel
GOLDEN_ANGLE = 180.0 * (3.0 - math.sqrt(5.0))

DEFAULT_SETTINGS = {
    'base_url': 'http://localhost:8080',
    'timeout': 10.0,
    'max_retries': 3,
    'color_saturation': 70,
    'color_lightness': 50,
    'output': 'text',
}


def _default_settings_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', SETTINGS_FILENAME)


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        doc = yaml.safe_load(f) or {}
    return doc if isinstance(doc, dict) else {}


def _coerce(key: str, value: Any) -> Any:
    # keep the type of the default so YAML strings like "5" still work
    default = DEFAULT_SETTINGS.get(key)
    if value is None or default is None:
        return value
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        return default


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML file if available, otherwise return defaults.
    Unknown keys are ignored; missing keys fall back to DEFAULT_SETTINGS.
    """
    if not path:
        path = _default_settings_path()
    settings = DEFAULT_SETTINGS.copy()
    if not os.path.exists(path):
        return settings
    try:
        doc = _read_yaml(path)
    except (OSError, yaml.YAMLError):
        return settings
    for k in DEFAULT_SETTINGS:
        if k in doc:
            settings[k] = _coerce(k, doc[k])
    return settings


def load_preset(preset_name: str, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the base settings with the named preset merged over them.

    Raises ValueError when the settings file is missing, unreadable or has no such preset.
    """
    if not path:
        path = _default_settings_path()
    if not os.path.exists(path):
        raise ValueError(f"Settings file not found at: {path}")
    base = load_settings(path)
    try:
        doc = _read_yaml(path)
    except (OSError, yaml.YAMLError) as ex:
        raise ValueError(f"Failed to load presets from {path}: {ex}")

    presets = doc.get('presets') or {}
    if not isinstance(presets, dict) or preset_name not in presets:
        raise ValueError(f"Preset '{preset_name}' not found in {path}")

    merged = base.copy()
    preset_map = presets.get(preset_name) or {}
    for k, v in (preset_map.items() if isinstance(preset_map, dict) else []):
        if k in DEFAULT_SETTINGS:
            merged[k] = _coerce(k, v)
    return merged


def list_presets(path: Optional[str] = None) -> list:
    """Return the preset names defined in the settings YAML (or an empty list)."""
    if not path:
        path = _default_settings_path()
    if not os.path.exists(path):
        return []
    try:
        presets = _read_yaml(path).get('presets')
    except (OSError, yaml.YAMLError):
        return []
    return list(presets.keys()) if isinstance(presets, dict) else []


def color_for(index: int, saturation: int = 70, lightness: int = 50) -> str:
    """HSL colour for the index-th chart series; same index, same colour."""
    hue = (index * GOLDEN_ANGLE) % 360
    return f"hsl({hue:.2f}, {saturation}%, {lightness}%)"


def assign_series_colors(names: Iterable[str], saturation: int = 70, lightness: int = 50) -> Dict[str, str]:
    """Map each series name to the colour of its position in iteration order."""
    return {name: color_for(i, saturation, lightness) for i, name in enumerate(names)}
