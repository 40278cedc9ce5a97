"""
UltiFocus Lock — the state machine that holds a user inside a timed focus
session.

    Idle --start()--> Active --end(reason)--> Idle

There is no pause state. While Active the manager keeps the page in
fullscreen, intercepts unload, tab-hide, context-menu and escape shortcuts,
counts every escape attempt, and on mobile holds a wake lock with scrolling,
text selection and orientation locked. The only way out before the timer
elapses is request_emergency_exit(), which needs two separate confirmations.

end() reverses everything start() applied. Each teardown step is guarded on
its own so a failing step never leaves the rest of the environment locked.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..clock import Cancellable, Clock
from ..device.capabilities import DeviceCapabilities
from ..errors import AlreadyActiveError
from ..host.base import EventTarget, Feature, HostEnvironment, HostError, Listener, PageEvent
from ..timer.view import SessionTimerView
from .notifications import LockModeFlag, LockNotifier
from .optimizer import MobileOptimizer
from .prompts import FINAL_EXIT_WARNING, ConfirmationPrompter, first_exit_warning, stay_focused_alert
from .rules import match_blocked_shortcut

logger = logging.getLogger(__name__)

UNLOAD_WARNING = "⚠️ UltiFocus is active! You will lose all progress if you leave."


class EndReason(str, Enum):
    COMPLETED = "completed"
    USER_ENDED = "user-ended"
    EMERGENCY = "emergency"


@dataclass
class FocusLockSession:
    id: str
    start_time: int                 # epoch ms
    duration_seconds: int
    is_active: bool
    is_mobile_platform: bool


@dataclass
class EndedSession:
    """What end() hands back: the final snapshot plus how it ended."""
    session: FocusLockSession
    reason: EndReason
    exit_attempts: int
    ended_at: int                   # epoch ms


ChangeListener = Callable[[bool], None]


class FocusLockManager:

    def __init__(
        self,
        host: HostEnvironment,
        clock: Clock,
        capabilities: DeviceCapabilities,
        optimizer: MobileOptimizer,
        prompter: ConfirmationPrompter,
        flag: Optional[LockModeFlag] = None,
        alert_delay_ms: int = 500,
        orientation: str = "portrait",
    ):
        self._host = host
        self._clock = clock
        self._capabilities = capabilities
        self._optimizer = optimizer
        self.prompter = prompter
        self.flag = flag or LockModeFlag()
        self._notifier = LockNotifier(host)
        self._alert_delay_ms = alert_delay_ms
        self._orientation = orientation

        self._session: Optional[FocusLockSession] = None
        self._exit_attempts = 0
        self._listeners: List[ChangeListener] = []
        self._installed: List[Tuple[EventTarget, str, Listener]] = []
        self._pending_alerts: List[Cancellable] = []
        self.last_ended: Optional[EndedSession] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, duration_seconds: int) -> FocusLockSession:
        if self.is_active():
            raise AlreadyActiveError()
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be a positive integer, got {duration_seconds!r}")

        logger.info("Starting UltiFocus mode for %ss", duration_seconds)

        info = self._capabilities.detect()
        is_mobile = info.is_mobile or info.is_tablet
        now = self._clock.now_ms()

        self._session = FocusLockSession(
            id=f"ultifocus-{now}-{uuid.uuid4().hex[:8]}",
            start_time=now,
            duration_seconds=duration_seconds,
            is_active=True,
            is_mobile_platform=is_mobile,
        )
        self._exit_attempts = 0

        try:
            self._activate(is_mobile)
        except Exception:
            logger.exception("UltiFocus activation failed, rolling back")
            self._rollback(is_mobile)
            raise

        self._notify(True)
        self._notifier.activated(is_mobile)

        logger.info("UltiFocus mode activated: %s (mobile=%s)", self._session.id, is_mobile)
        return replace(self._session)

    def end(self, reason: EndReason | str) -> Optional[EndedSession]:
        reason = EndReason(reason)
        if not self.is_active():
            logger.warning("No active UltiFocus session to end")
            return None

        session = self._session
        logger.info("Ending UltiFocus mode (%s)", reason.value)

        self._guarded("cancel pending alerts", self._cancel_pending_alerts)
        self._guarded("disable page lock", self._disable_page_lock)
        self._guarded("exit fullscreen", self._exit_fullscreen)

        if session.is_mobile_platform:
            self._guarded("mobile cleanup", self._optimizer.cleanup)
            pattern = "success" if reason == EndReason.COMPLETED else "warning"
            self._guarded("end vibration", lambda: self._optimizer.vibrate_pattern(pattern))

        self.flag.clear()
        session.is_active = False

        ended = EndedSession(
            session=replace(session),
            reason=reason,
            exit_attempts=self._exit_attempts,
            ended_at=self._clock.now_ms(),
        )
        self.last_ended = ended

        self._notify(False)
        self._guarded("end notification", lambda: self._notifier.ended(reason.value))

        # a subscriber may already have started the next session
        if self._session is session:
            self._session = None
            self._exit_attempts = 0

        logger.info("UltiFocus mode deactivated")
        return ended

    def _activate(self, is_mobile: bool) -> None:
        if is_mobile:
            logger.info("Applying mobile optimizations")
            self._optimizer.request_wake_lock()
            self._optimizer.prevent_scrolling()
            self._optimizer.prevent_text_selection()
            self._optimizer.lock_orientation(self._orientation)
            self._optimizer.vibrate_pattern("success")

        self._enter_fullscreen()
        self._enable_page_lock()
        self.flag.set()

    def _rollback(self, is_mobile: bool) -> None:
        self._guarded("disable page lock", self._disable_page_lock)
        self._guarded("exit fullscreen", self._exit_fullscreen)
        if is_mobile:
            self._guarded("mobile cleanup", self._optimizer.cleanup)
        self.flag.clear()
        self._session = None
        self._exit_attempts = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_active(self) -> bool:
        return self._session is not None and self._session.is_active

    def get_session(self) -> Optional[FocusLockSession]:
        return replace(self._session) if self._session else None

    def get_exit_attempts(self) -> int:
        return self._exit_attempts

    def get_time_remaining(self) -> int:
        if not self.is_active():
            return 0
        return SessionTimerView.for_session(self._session, self._clock).time_remaining()

    # ------------------------------------------------------------------
    # Exit attempts
    # ------------------------------------------------------------------

    def increment_exit_attempts(self) -> int:
        self._exit_attempts += 1
        if self._session is not None and self._session.is_mobile_platform:
            self._optimizer.vibrate_pattern("warning")
        return self._exit_attempts

    def request_emergency_exit(self) -> bool:
        self.increment_exit_attempts()
        if not self.is_active():
            return False

        if not self.prompter.confirm(first_exit_warning(self._exit_attempts)):
            return False
        # second, distinct confirmation
        if not self.prompter.confirm(FINAL_EXIT_WARNING):
            return False

        self.end(EndReason.EMERGENCY)
        return True

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_change(self, callback: ChangeListener) -> Callable[[], None]:
        if callback not in self._listeners:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _notify(self, is_active: bool) -> None:
        for callback in list(self._listeners):
            try:
                callback(is_active)
            except Exception:
                logger.exception("UltiFocus change listener failed")

    # ------------------------------------------------------------------
    # Page lock
    # ------------------------------------------------------------------

    def _enable_page_lock(self) -> None:
        self._listen(self._host.window, "beforeunload", self._on_before_unload)
        self._listen(self._host.document, "visibilitychange", self._on_visibility_change)
        self._listen(self._host.document, "contextmenu", self._on_context_menu)
        self._listen(self._host.document, "keydown", self._on_keydown)
        logger.info("Page lock enabled")

    def _disable_page_lock(self) -> None:
        while self._installed:
            target, event_type, listener = self._installed.pop()
            target.remove_event_listener(event_type, listener)
        logger.info("Page lock disabled")

    def _listen(self, target: EventTarget, event_type: str, listener: Listener) -> None:
        target.add_event_listener(event_type, listener)
        self._installed.append((target, event_type, listener))

    def _on_before_unload(self, event: PageEvent) -> None:
        if not self.is_active():
            return
        event.prevent_default()
        event.return_value = UNLOAD_WARNING
        # counted on every fire, even if the user then stays on the page
        self.increment_exit_attempts()

    def _on_visibility_change(self, event: PageEvent) -> None:
        if not self.is_active():
            return
        if self._host.document_hidden:
            logger.warning("User tried to switch tabs")
            self.increment_exit_attempts()
            if not self._session.is_mobile_platform:
                self._schedule_stay_focused_alert()
        elif self._session.is_mobile_platform:
            self._optimizer.vibrate_short()

    def _on_context_menu(self, event: PageEvent) -> None:
        if self.is_active():
            event.prevent_default()

    def _on_keydown(self, event: PageEvent) -> None:
        if not self.is_active():
            return
        rule = match_blocked_shortcut(event)
        if rule is None:
            return
        event.prevent_default()
        event.stop_propagation()
        self.increment_exit_attempts()
        logger.warning("Blocked keyboard shortcut %s (%s)", event.key, rule.name)

    def _schedule_stay_focused_alert(self) -> None:
        session_id = self._session.id

        def fire() -> None:
            if not self.is_active() or self._session.id != session_id:
                return
            try:
                self._host.alert(stay_focused_alert(self._exit_attempts))
            except HostError as e:
                logger.warning("Could not show stay-focused alert: %s", e)

        self._pending_alerts.append(self._clock.call_later(self._alert_delay_ms, fire))

    def _cancel_pending_alerts(self) -> None:
        while self._pending_alerts:
            self._pending_alerts.pop().cancel()

    # ------------------------------------------------------------------
    # Fullscreen
    # ------------------------------------------------------------------

    def _enter_fullscreen(self) -> bool:
        if not self._host.supports(Feature.FULLSCREEN):
            logger.info("Fullscreen not supported, continuing without it")
            return False
        try:
            self._host.request_fullscreen()
        except HostError as e:
            logger.warning("Could not enter fullscreen: %s", e)
            return False
        logger.info("Entered fullscreen")
        return True

    def _exit_fullscreen(self) -> None:
        if not self._host.is_fullscreen:
            return
        try:
            self._host.exit_fullscreen()
            logger.info("Exited fullscreen")
        except HostError as e:
            logger.warning("Could not exit fullscreen: %s", e)

    # ------------------------------------------------------------------

    def _guarded(self, step: str, fn: Callable[[], object]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("UltiFocus teardown step '%s' failed", step)
