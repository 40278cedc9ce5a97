"""
/settings — read and update user-tunable runtime settings.

Changes apply to the next attached client; a running session keeps the
values it started with.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    vibration_enabled:    Optional[bool]  = None
    lock_orientation:     Optional[Literal["portrait", "landscape"]] = None
    standard_xp:          Optional[int]   = Field(None, ge=0,   le=1000)
    standard_coins:       Optional[int]   = Field(None, ge=0,   le=1000)
    lock_mode_xp:         Optional[int]   = Field(None, ge=0,   le=5000)
    lock_mode_coins:      Optional[int]   = Field(None, ge=0,   le=5000)
    lock_mode_multiplier: Optional[float] = Field(None, ge=1.0, le=10.0)


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """Apply a partial update; unknown keys are ignored. Persists to data/settings.json."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    merged = {**get_settings(), **data}
    if merged["lock_mode_xp"] < merged["standard_xp"] or merged["lock_mode_coins"] < merged["standard_coins"]:
        raise HTTPException(status_code=422, detail="Lock mode rewards cannot be lower than standard rewards")
    return {"settings": update_settings(data)}
