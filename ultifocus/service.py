"""
Focus Controller — the long-lived owner of one client's lock engine.

Created once per app (see api/app.py) and handed to the routes. It holds the
attached client's host mirror, device capabilities, mobile optimizer and lock
manager, settles rewards when a session ends, and serialises every call
behind one re-entrant lock: route handlers run on a thread pool and delayed
alerts fire on timer threads.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .clock import Cancellable, Clock, SystemClock
from .config import config
from .device.capabilities import DeviceCapabilities, DeviceInfo
from .errors import AlreadyActiveError, LockedSessionError, NoClientAttachedError
from .host.base import PageEvent
from .host.mirror import HostCommand, MirroredBrowserHost
from .lock.notifications import LockModeFlag
from .lock.optimizer import MobileOptimizer
from .lock.prompts import ScriptedPrompter
from .lock.session import EndedSession, EndReason, FocusLockManager, FocusLockSession
from .rewards import SessionMode, SessionOutcome, settle
from .settings import get_settings
from .timer.view import SessionTimerView

logger = logging.getLogger(__name__)


class _SerializedClock(Clock):
    """Wraps a clock so delayed callbacks run under the controller lock."""

    def __init__(self, inner: Clock, lock: threading.RLock):
        self._inner = inner
        self._lock = lock

    def now_ms(self) -> int:
        return self._inner.now_ms()

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Cancellable:
        def run() -> None:
            with self._lock:
                fn()
        return self._inner.call_later(delay_ms, run)


class FocusController:

    def __init__(self, clock: Optional[Clock] = None, alert_delay_ms: Optional[int] = None):
        self._lock = threading.RLock()
        self._clock = _SerializedClock(clock or SystemClock(), self._lock)
        self._alert_delay_ms = (
            config.stay_focused_alert_delay_ms if alert_delay_ms is None else alert_delay_ms
        )
        self.flag = LockModeFlag()

        self._host: Optional[MirroredBrowserHost] = None
        self._capabilities: Optional[DeviceCapabilities] = None
        self._manager: Optional[FocusLockManager] = None

        self._change_listeners: List[Callable[[bool], None]] = []
        self._outcome_listeners: List[Callable[[SessionOutcome], None]] = []
        self.last_outcome: Optional[SessionOutcome] = None

    # ------------------------------------------------------------------
    # Client attachment
    # ------------------------------------------------------------------

    def attach(
        self,
        user_agent: str,
        features: Iterable[str],
        rejections: Iterable[str] = (),
        notification_permission: str = "granted",
    ) -> DeviceInfo:
        with self._lock:
            if self._manager is not None and self._manager.is_active():
                raise AlreadyActiveError("Cannot attach a new client while a session is active")

            s = get_settings()
            host = MirroredBrowserHost(
                user_agent=user_agent,
                features=features,
                rejections=rejections,
                notification_permission=notification_permission,
            )
            capabilities = DeviceCapabilities(host)
            optimizer = MobileOptimizer(host, vibration_enabled=s["vibration_enabled"])
            manager = FocusLockManager(
                host,
                self._clock,
                capabilities,
                optimizer,
                ScriptedPrompter(),
                flag=self.flag,
                alert_delay_ms=self._alert_delay_ms,
                orientation=s["lock_orientation"],
            )
            manager.on_change(self._fan_out_change)

            self._host, self._capabilities, self._manager = host, capabilities, manager
            info = capabilities.detect()
            logger.info("Client attached: %s on %s", info.browser_name, info.os_name)
            return info

    @property
    def attached(self) -> bool:
        return self._manager is not None

    def _require(self) -> FocusLockManager:
        if self._manager is None:
            raise NoClientAttachedError()
        return self._manager

    # ------------------------------------------------------------------
    # Lock lifecycle
    # ------------------------------------------------------------------

    def start(self, duration_seconds: int) -> FocusLockSession:
        with self._lock:
            return self._require().start(duration_seconds)

    def end(self, reason: EndReason | str) -> Optional[SessionOutcome]:
        with self._lock:
            ended = self._require().end(reason)
            return self._settle(ended) if ended else None

    def request_emergency_exit(self, answers: Iterable[bool]) -> Tuple[bool, List[str]]:
        """Run the two-step exit with the client's confirmation answers."""
        with self._lock:
            manager = self._require()
            prompter = ScriptedPrompter(answers)
            manager.prompter = prompter
            exited = manager.request_emergency_exit()
            if exited:
                self._settle(manager.last_ended)
            return exited, prompter.asked

    def increment_exit_attempts(self) -> int:
        with self._lock:
            return self._require().increment_exit_attempts()

    def dispatch(self, event: PageEvent) -> PageEvent:
        with self._lock:
            self._require()
            return self._host.dispatch_page_event(event)

    def pause(self) -> None:
        with self._lock:
            if self._manager is not None and self._manager.is_active():
                raise LockedSessionError("pause")

    def reset(self) -> None:
        with self._lock:
            if self._manager is not None and self._manager.is_active():
                raise LockedSessionError("reset")

    def tick(self) -> Optional[SessionOutcome]:
        """Countdown poll: ends the session as completed once no time remains."""
        with self._lock:
            manager = self._manager
            if manager is None or not manager.is_active():
                return None
            if manager.get_time_remaining() > 0:
                return None
            logger.info("Countdown elapsed, completing session")
            return self.end(EndReason.COMPLETED)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            manager = self._manager
            session = manager.get_session() if manager else None
            state: Dict[str, Any] = {
                "attached": manager is not None,
                "active": bool(manager and manager.is_active()),
                "session": None,
                "exit_attempts": manager.get_exit_attempts() if manager else 0,
                "time_remaining": manager.get_time_remaining() if manager else 0,
                "lock_mode_flag": self.flag.is_set(),
                "timer": None,
            }
            if session is not None:
                state["session"] = {
                    "id": session.id,
                    "start_time": session.start_time,
                    "duration_seconds": session.duration_seconds,
                    "is_active": session.is_active,
                    "is_mobile_platform": session.is_mobile_platform,
                }
                state["timer"] = SessionTimerView.for_session(session, self._clock).render()
            return state

    def device_report(self) -> Dict[str, Any]:
        with self._lock:
            if self._capabilities is None:
                raise NoClientAttachedError()
            rating = self._capabilities.get_effectiveness_rating()
            return {
                "info": self._capabilities.detect().to_dict(),
                "limitations": self._capabilities.get_mobile_limitations(),
                "effectiveness": {"score": rating.score, "label": rating.label, "color": rating.color},
            }

    def drain_commands(self) -> List[HostCommand]:
        with self._lock:
            return self._host.drain() if self._host else []

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        if callback not in self._change_listeners:
            self._change_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._change_listeners:
                self._change_listeners.remove(callback)

        return unsubscribe

    def on_outcome(self, callback: Callable[[SessionOutcome], None]) -> None:
        """Register the completion callback that persists results and grants rewards."""
        self._outcome_listeners.append(callback)

    def _fan_out_change(self, is_active: bool) -> None:
        for callback in list(self._change_listeners):
            try:
                callback(is_active)
            except Exception:
                logger.exception("Controller change listener failed")

    def _settle(self, ended: EndedSession) -> SessionOutcome:
        session = ended.session
        outcome = settle(
            session_id=session.id,
            mode=SessionMode.LOCK,
            reason=ended.reason.value,
            duration_seconds=session.duration_seconds,
            elapsed_seconds=max(0, ended.ended_at - session.start_time) / 1000.0,
            exit_attempts=ended.exit_attempts,
            ended_at=ended.ended_at,
        )
        self.last_outcome = outcome
        for callback in list(self._outcome_listeners):
            try:
                callback(outcome)
            except Exception:
                logger.exception("Session outcome callback failed")
        return outcome
