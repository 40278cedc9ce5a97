"""
Reward policy — previews what a session pays out and settles the outcome
once it ends. A completed session earns the full amount for its mode; a
session that ends early earns nothing but still records the minutes done.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .settings import get_settings


class SessionMode(str, Enum):
    STANDARD = "standard"
    LOCK = "lock"


@dataclass(frozen=True)
class RewardPreview:
    xp: int
    coins: int
    multiplier_badge: Optional[str] = None


@dataclass
class SessionOutcome:
    session_id: str
    mode: SessionMode
    reason: str
    duration_seconds: int
    completed_minutes: int
    xp_earned: int
    coins_earned: int
    exit_attempts: int
    ended_at: int                   # epoch ms

    @property
    def completed(self) -> bool:
        return self.reason == "completed"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["mode"] = self.mode.value
        return d


def reward_preview(mode: SessionMode, settings: Optional[Dict[str, Any]] = None) -> RewardPreview:
    """Fixed per-mode preview; lock mode never previews less than standard."""
    s = settings or get_settings()
    standard = RewardPreview(xp=s["standard_xp"], coins=s["standard_coins"])
    if SessionMode(mode) == SessionMode.STANDARD:
        return standard
    return RewardPreview(
        xp=max(s["lock_mode_xp"], standard.xp),
        coins=max(s["lock_mode_coins"], standard.coins),
        multiplier_badge=f"{s['lock_mode_multiplier']:g}x",
    )


def settle(
    session_id: str,
    mode: SessionMode,
    reason: str,
    duration_seconds: int,
    elapsed_seconds: float,
    exit_attempts: int,
    ended_at: int,
    settings: Optional[Dict[str, Any]] = None,
) -> SessionOutcome:
    if reason == "completed":
        preview = reward_preview(mode, settings)
        minutes = duration_seconds // 60
        xp, coins = preview.xp, preview.coins
    else:
        minutes = int(min(elapsed_seconds, duration_seconds) // 60)
        xp = coins = 0

    return SessionOutcome(
        session_id=session_id,
        mode=SessionMode(mode),
        reason=reason,
        duration_seconds=duration_seconds,
        completed_minutes=max(0, minutes),
        xp_earned=xp,
        coins_earned=coins,
        exit_attempts=exit_attempts,
        ended_at=ended_at,
    )
