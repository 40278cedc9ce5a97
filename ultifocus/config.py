"""
Central configuration for the UltiFocus lock engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    # Countdown
    tick_interval_ms: int = 1000              # how often the countdown is re-derived
    default_duration_minutes: int = 25

    # Lock behaviour
    stay_focused_alert_delay_ms: int = 500    # desktop alert after a tab switch

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (ULTIFOCUS_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"ULTIFOCUS_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        return cfg


# Module-level singleton
config = Config.load()
