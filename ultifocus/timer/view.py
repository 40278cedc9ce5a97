"""
Session Timer View — remaining time and progress derived from the wall clock.

Nothing here counts down: every value is recomputed from now - start_time,
so a throttled tab or a missed tick never drifts the display. Safe to call at
any sampling rate.
"""

from __future__ import annotations

from typing import Any, Dict

from ..clock import Clock
from ..rewards import RewardPreview, SessionMode, reward_preview


class SessionTimerView:

    def __init__(
        self,
        start_time_ms: int,
        duration_seconds: int,
        clock: Clock,
        mode: SessionMode = SessionMode.LOCK,
    ):
        self.start_time_ms = start_time_ms
        self.duration_seconds = duration_seconds
        self.mode = SessionMode(mode)
        self._clock = clock

    @classmethod
    def for_session(cls, session, clock: Clock, mode: SessionMode = SessionMode.LOCK) -> "SessionTimerView":
        return cls(session.start_time, session.duration_seconds, clock, mode)

    def _elapsed_ms(self) -> int:
        return max(0, self._clock.now_ms() - self.start_time_ms)

    def elapsed_seconds(self) -> float:
        return self._elapsed_ms() / 1000.0

    def time_remaining(self) -> int:
        remaining_ms = self.duration_seconds * 1000 - self._elapsed_ms()
        return max(0, remaining_ms // 1000)

    def progress_percent(self) -> float:
        if self.duration_seconds <= 0:
            return 100.0
        pct = self.elapsed_seconds() / self.duration_seconds * 100.0
        return min(100.0, pct)

    def is_complete(self) -> bool:
        return self.time_remaining() == 0

    def format_remaining(self) -> str:
        minutes, seconds = divmod(self.time_remaining(), 60)
        return f"{minutes:02d}:{seconds:02d}"

    def reward_preview(self) -> RewardPreview:
        return reward_preview(self.mode)

    def render(self) -> Dict[str, Any]:
        preview = self.reward_preview()
        return {
            "time_remaining": self.time_remaining(),
            "display": self.format_remaining(),
            "progress_percent": round(self.progress_percent(), 2),
            "complete": self.is_complete(),
            "reward_preview": {
                "xp": preview.xp,
                "coins": preview.coins,
                "multiplier_badge": preview.multiplier_badge,
            },
        }
