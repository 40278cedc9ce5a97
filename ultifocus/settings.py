"""
User-tunable runtime settings — persisted to data/settings.json.

Import get_settings() anywhere in the engine to read current values.
Import update_settings(patch) to mutate and save.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import config

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    "vibration_enabled":    True,         # haptic feedback on mobile clients
    "lock_orientation":     "portrait",   # orientation held during a mobile session
    "standard_xp":          50,           # reward for a completed standard session
    "standard_coins":       50,
    "lock_mode_xp":         100,          # reward for a completed lock-mode session
    "lock_mode_coins":      100,
    "lock_mode_multiplier": 2.0,          # shown as a badge in the reward preview
}

_current: dict[str, Any] = {}


def _coerce(key: str, value: Any) -> Any:
    default = DEFAULTS[key]
    if isinstance(default, bool) and isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return type(default)(value)


def _load() -> None:
    global _current
    _current = dict(DEFAULTS)
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
            for k, v in saved.items():
                if k in DEFAULTS:
                    # coerce to the same type as the default
                    _current[k] = _coerce(k, v)
        except (ValueError, TypeError, AttributeError):
            logger.warning("Malformed settings file %s, using defaults", _FILE)
            _current = dict(DEFAULTS)


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = _coerce(k, v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return dict(_current)


# Eagerly load on import
_load()
