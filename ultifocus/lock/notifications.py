"""
Lock notifications — the shared lock-mode flag other subsystems read to hold
back their own notifications, and best-effort local notifications for lock
transitions.
"""

from __future__ import annotations

import logging
import threading

from ..host.base import HostEnvironment, HostError

logger = logging.getLogger(__name__)

ACTIVATED_TITLE = "🔒 UltiFocus Activated"
ENDED_TITLE = "UltiFocus Ended"

ACTIVATED_BODY_MOBILE = (
    "Focus mode active. Screen will stay on. Complete the session to earn rewards!"
)
ACTIVATED_BODY_DESKTOP = (
    "You are now locked in focus mode. Complete the session or explicitly end it to exit."
)

ENDED_BODIES = {
    "completed": "✅ UltiFocus Completed! Great work staying focused!",
    "user-ended": "⚠️ UltiFocus Ended Early. Try to complete next time!",
    "emergency": "🚨 UltiFocus Emergency Exit",
}


class LockModeFlag:
    """Process-wide 'lock mode active' marker; set and cleared by the lock manager only."""

    def __init__(self):
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()

    def should_suppress_notifications(self) -> bool:
        return self.is_set()


class LockNotifier:

    def __init__(self, host: HostEnvironment):
        self._host = host

    def show(self, title: str, body: str) -> bool:
        if self._host.notification_permission != "granted":
            logger.debug("Notification skipped, permission %s", self._host.notification_permission)
            return False
        try:
            self._host.show_notification(title, body, tag="ultifocus")
        except HostError as e:
            logger.warning("Could not show notification: %s", e)
            return False
        return True

    def activated(self, is_mobile: bool) -> bool:
        body = ACTIVATED_BODY_MOBILE if is_mobile else ACTIVATED_BODY_DESKTOP
        return self.show(ACTIVATED_TITLE, body)

    def ended(self, reason: str) -> bool:
        return self.show(ENDED_TITLE, ENDED_BODIES[reason])
