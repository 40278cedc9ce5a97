"""
Mirrored Browser Host — server-side mirror of the attached browser page.

The browser client reports its user agent and feature set when it attaches,
forwards page events for dispatch, and polls the command outbox to apply the
environment changes the lock engine decided on (wake lock, vibration,
fullscreen, body styles, alerts, notifications). The mirror keeps the page
state those commands imply so the engine can reason about it without a
round-trip.

Actions listed in *rejections* raise HostError, modelling a browser that
exposes an API but refuses the call (permission denied, no user gesture…).
Action names: wake_lock.request, wake_lock.release, vibrate,
orientation.lock, orientation.unlock, fullscreen.request, fullscreen.exit,
notification.show, alert, style.set.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .base import EventTarget, Feature, HostEnvironment, HostError, PageEvent, WakeLockHandle

_ACTION_FEATURE: Dict[str, Feature] = {
    "wake_lock.request": Feature.WAKE_LOCK,
    "wake_lock.release": Feature.WAKE_LOCK,
    "vibrate": Feature.VIBRATION,
    "orientation.lock": Feature.ORIENTATION_LOCK,
    "orientation.unlock": Feature.ORIENTATION_LOCK,
    "fullscreen.request": Feature.FULLSCREEN,
    "fullscreen.exit": Feature.FULLSCREEN,
    "notification.show": Feature.NOTIFICATIONS,
}


@dataclass
class HostCommand:
    """One environment change for the client to apply."""
    action: str
    params: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class MirroredBrowserHost(HostEnvironment):

    def __init__(
        self,
        user_agent: str = "",
        features: Iterable[Feature | str] = (),
        rejections: Iterable[str] = (),
        notification_permission: str = "granted",
        hidden: bool = False,
    ):
        self._user_agent = user_agent
        self._features = {Feature(f) for f in features}
        self._rejections = set(rejections)
        self._permission = notification_permission if Feature.NOTIFICATIONS in self._features else "denied"
        self._hidden = hidden
        self._fullscreen = False
        self._handle_ids = itertools.count(1)

        self.window = EventTarget("window")
        self.document = EventTarget("document")
        self.body_style: Dict[str, str] = {}
        self.wake_lock: Optional[WakeLockHandle] = None
        self.orientation_lock: Optional[str] = None
        self.outbox: List[HostCommand] = []

    # ------------------------------------------------------------------
    # Capability queries
    # ------------------------------------------------------------------

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def supports(self, feature: Feature) -> bool:
        return Feature(feature) in self._features

    @property
    def document_hidden(self) -> bool:
        return self._hidden

    @property
    def is_fullscreen(self) -> bool:
        return self._fullscreen

    @property
    def notification_permission(self) -> str:
        return self._permission

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set_body_style(self, prop: str, value: str) -> None:
        self._check("style.set")
        if value:
            self.body_style[prop] = value
        else:
            self.body_style.pop(prop, None)
        self._emit("style.set", prop=prop, value=value)

    def request_wake_lock(self) -> WakeLockHandle:
        self._check("wake_lock.request")
        self.wake_lock = WakeLockHandle(id=next(self._handle_ids))
        self._emit("wake_lock.request", handle=self.wake_lock.id)
        return self.wake_lock

    def release_wake_lock(self, handle: WakeLockHandle) -> None:
        self._check("wake_lock.release")
        handle.released = True
        if self.wake_lock is handle:
            self.wake_lock = None
        self._emit("wake_lock.release", handle=handle.id)

    def vibrate(self, pattern: List[int]) -> None:
        self._check("vibrate")
        self._emit("vibrate", pattern=list(pattern))

    def lock_orientation(self, orientation: str) -> None:
        self._check("orientation.lock")
        self.orientation_lock = orientation
        self._emit("orientation.lock", orientation=orientation)

    def unlock_orientation(self) -> None:
        self._check("orientation.unlock")
        self.orientation_lock = None
        self._emit("orientation.unlock")

    def request_fullscreen(self) -> None:
        self._check("fullscreen.request")
        self._fullscreen = True
        self._emit("fullscreen.request")

    def exit_fullscreen(self) -> None:
        self._check("fullscreen.exit")
        self._fullscreen = False
        self._emit("fullscreen.exit")

    def alert(self, message: str) -> None:
        self._check("alert")
        self._emit("alert", message=message)

    def show_notification(self, title: str, body: str, tag: str = "") -> None:
        self._check("notification.show")
        self._emit("notification.show", title=title, body=body, tag=tag)

    # ------------------------------------------------------------------
    # Client-facing helpers
    # ------------------------------------------------------------------

    def dispatch_page_event(self, event: PageEvent) -> PageEvent:
        """Route a page event reported by the client to the mirrored target."""
        if event.type == "visibilitychange" and event.hidden is not None:
            self._hidden = event.hidden
        target = self.window if event.type == "beforeunload" else self.document
        return target.dispatch(event)

    def drain(self) -> List[HostCommand]:
        commands = self.outbox[:]
        self.outbox.clear()
        return commands

    def commands(self, action: str) -> List[HostCommand]:
        return [c for c in self.outbox if c.action == action]

    def listener_total(self) -> int:
        return self.window.listener_count() + self.document.listener_count()

    # ------------------------------------------------------------------

    def _check(self, action: str) -> None:
        feature = _ACTION_FEATURE.get(action)
        if feature is not None and feature not in self._features:
            raise HostError(action, "not supported")
        if action == "notification.show" and self._permission != "granted":
            raise HostError(action, f"permission {self._permission}")
        if action in self._rejections:
            raise HostError(action)

    def _emit(self, action: str, **params: Any) -> None:
        self.outbox.append(HostCommand(action=action, params=params))
