"""
Mobile Optimizer — environment changes applied during a mobile lock session:
screen wake lock, haptic feedback, scroll and text-selection suppression,
orientation lock.

Everything here fails soft: an unsupported or refused host API is logged and
reported as False, never raised.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from ..host.base import Feature, HostEnvironment, HostError, WakeLockHandle

logger = logging.getLogger(__name__)

VIBRATION_PATTERNS: Dict[str, List[int]] = {
    "warning": [100, 50, 100],              # buzz-pause-buzz
    "error":   [200, 100, 200, 100, 200],   # three long buzzes
    "success": [50, 50, 50],                # three short buzzes
}

_SCROLL_LOCK_STYLE = {
    "overflow": "hidden",
    "position": "fixed",
    "width": "100%",
    "height": "100%",
}

_USER_SELECT_PROPS = (
    "user-select",
    "-webkit-user-select",
    "-moz-user-select",
    "-ms-user-select",
)


class MobileOptimizer:

    def __init__(self, host: HostEnvironment, vibration_enabled: bool = True):
        self._host = host
        self._wake_lock: Optional[WakeLockHandle] = None
        self.vibration_enabled = vibration_enabled

    # ------------------------------------------------------------------
    # Wake lock
    # ------------------------------------------------------------------

    @property
    def has_wake_lock(self) -> bool:
        return self._wake_lock is not None

    def request_wake_lock(self) -> bool:
        if self._wake_lock is not None:
            return True
        if not self._host.supports(Feature.WAKE_LOCK):
            logger.warning("Wake Lock API not supported")
            return False
        try:
            self._wake_lock = self._host.request_wake_lock()
        except HostError as e:
            logger.error("Wake lock request failed: %s", e)
            return False
        logger.info("Wake lock acquired")
        return True

    def release_wake_lock(self) -> None:
        if self._wake_lock is None:
            return
        handle, self._wake_lock = self._wake_lock, None
        try:
            self._host.release_wake_lock(handle)
            logger.info("Wake lock released")
        except HostError as e:
            logger.error("Wake lock release failed: %s", e)

    # ------------------------------------------------------------------
    # Haptics
    # ------------------------------------------------------------------

    def set_vibration_enabled(self, enabled: bool) -> None:
        self.vibration_enabled = enabled

    def vibrate(self, pattern: Union[int, List[int]]) -> bool:
        if not self.vibration_enabled:
            return False
        if not self._host.supports(Feature.VIBRATION):
            return False
        sequence = [pattern] if isinstance(pattern, int) else list(pattern)
        try:
            self._host.vibrate(sequence)
        except HostError as e:
            logger.warning("Vibration failed: %s", e)
            return False
        return True

    def vibrate_short(self) -> bool:
        return self.vibrate(50)

    def vibrate_medium(self) -> bool:
        return self.vibrate(100)

    def vibrate_long(self) -> bool:
        return self.vibrate(200)

    def vibrate_pattern(self, name: str) -> bool:
        pattern = VIBRATION_PATTERNS.get(name)
        if pattern is None:
            return False
        return self.vibrate(pattern)

    # ------------------------------------------------------------------
    # Scrolling / text selection
    # ------------------------------------------------------------------

    def prevent_scrolling(self) -> bool:
        return self._apply_styles(_SCROLL_LOCK_STYLE, "Scroll lock")

    def allow_scrolling(self) -> bool:
        return self._apply_styles(dict.fromkeys(_SCROLL_LOCK_STYLE, ""), "Scroll unlock")

    def prevent_text_selection(self) -> bool:
        return self._apply_styles(dict.fromkeys(_USER_SELECT_PROPS, "none"), "Text selection lock")

    def allow_text_selection(self) -> bool:
        return self._apply_styles(dict.fromkeys(_USER_SELECT_PROPS, ""), "Text selection unlock")

    def _apply_styles(self, styles: Dict[str, str], label: str) -> bool:
        """Write every property even if one is refused; False if any was."""
        ok = True
        for prop, value in styles.items():
            try:
                self._host.set_body_style(prop, value)
            except HostError as e:
                logger.warning("%s failed: %s", label, e)
                ok = False
        return ok

    # ------------------------------------------------------------------
    # Orientation
    # ------------------------------------------------------------------

    def lock_orientation(self, orientation: str = "portrait") -> bool:
        if not self._host.supports(Feature.ORIENTATION_LOCK):
            logger.warning("Screen orientation lock not supported")
            return False
        try:
            self._host.lock_orientation(orientation)
        except HostError as e:
            logger.warning("Orientation lock failed: %s", e)
            return False
        logger.info("Orientation locked to %s", orientation)
        return True

    def unlock_orientation(self) -> bool:
        if not self._host.supports(Feature.ORIENTATION_LOCK):
            return False
        try:
            self._host.unlock_orientation()
        except HostError as e:
            logger.warning("Orientation unlock failed: %s", e)
            return False
        return True

    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Undo every change above; each step runs even if an earlier one fails."""
        for step in (
            self.release_wake_lock,
            self.allow_scrolling,
            self.unlock_orientation,
            self.allow_text_selection,
        ):
            try:
                step()
            except Exception:
                logger.exception("Mobile cleanup step %s failed", step.__name__)
