"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# ── Device ─────────────────────────────────────────────────────────────────

class AttachRequest(BaseModel):
    user_agent: str
    features: List[Literal["fullscreen", "wake_lock", "vibration", "orientation_lock", "notifications"]] = Field(
        default_factory=list, description="Browser APIs present on the client"
    )
    rejections: List[str] = Field(
        default_factory=list, description="Host actions the client already knows it will refuse"
    )
    notification_permission: Literal["granted", "denied", "default"] = "granted"


class DeviceInfoOut(BaseModel):
    is_mobile: bool
    is_tablet: bool
    is_desktop: bool
    is_ios: bool
    is_android: bool
    is_safari: bool
    is_chrome: bool
    browser_name: str
    os_name: str
    has_fullscreen_support: bool
    has_wake_lock_support: bool
    has_vibration_support: bool
    has_reliable_unload_warning_support: bool


class EffectivenessOut(BaseModel):
    score: int
    label: str
    color: str


class DeviceReportOut(BaseModel):
    info: DeviceInfoOut
    limitations: List[str]
    effectiveness: EffectivenessOut


# ── Lock ───────────────────────────────────────────────────────────────────

class LockStartRequest(BaseModel):
    duration_seconds: int = Field(1500, gt=0, le=24 * 3600)


class LockEndRequest(BaseModel):
    reason: Literal["completed", "user-ended", "emergency"]


class EmergencyExitRequest(BaseModel):
    answers: List[bool] = Field(
        default_factory=list,
        description="User's answers to the first and final confirmation, in order",
    )


class EmergencyExitOut(BaseModel):
    exited: bool
    prompts: List[str]
    exit_attempts: int


class PageEventIn(BaseModel):
    type: Literal["beforeunload", "visibilitychange", "contextmenu", "keydown"]
    key: str = ""
    ctrl_key: bool = False
    shift_key: bool = False
    alt_key: bool = False
    meta_key: bool = False
    hidden: Optional[bool] = None


class PageEventOut(BaseModel):
    default_prevented: bool
    propagation_stopped: bool
    return_value: str
    exit_attempts: int


class SessionOut(BaseModel):
    id: str
    start_time: int
    duration_seconds: int
    is_active: bool
    is_mobile_platform: bool


class RewardPreviewOut(BaseModel):
    xp: int
    coins: int
    multiplier_badge: Optional[str] = None


class TimerOut(BaseModel):
    time_remaining: int
    display: str
    progress_percent: float = Field(..., ge=0.0, le=100.0)
    complete: bool
    reward_preview: RewardPreviewOut


class LockStateOut(BaseModel):
    attached: bool
    active: bool
    session: Optional[SessionOut]
    exit_attempts: int
    time_remaining: int
    lock_mode_flag: bool
    timer: Optional[TimerOut]


class SessionOutcomeOut(BaseModel):
    session_id: str
    mode: str
    reason: str
    duration_seconds: int
    completed_minutes: int
    xp_earned: int
    coins_earned: int
    exit_attempts: int
    ended_at: int


class HostCommandOut(BaseModel):
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    timestamp: float
