"""
Host environment — the capability provider the lock engine runs against.

Every browser facility the lock relies on (wake lock, vibration, orientation,
fullscreen, notifications, body styles, page events) is reached through a
HostEnvironment. Implementations answer supports(feature) explicitly and
raise HostError when the underlying API rejects a request; callers in the
lock core catch it and degrade.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional


class Feature(str, Enum):
    FULLSCREEN = "fullscreen"
    WAKE_LOCK = "wake_lock"
    VIBRATION = "vibration"
    ORIENTATION_LOCK = "orientation_lock"
    NOTIFICATIONS = "notifications"


class HostError(Exception):
    """A host API was unavailable or refused the request."""

    def __init__(self, action: str, reason: str = "rejected"):
        super().__init__(f"{action}: {reason}")
        self.action = action
        self.reason = reason


# ---------------------------------------------------------------------------
# Page events
# ---------------------------------------------------------------------------

@dataclass
class PageEvent:
    type: str                        # beforeunload | visibilitychange | contextmenu | keydown
    key: str = ""
    ctrl_key: bool = False
    shift_key: bool = False
    alt_key: bool = False
    meta_key: bool = False
    hidden: Optional[bool] = None    # visibilitychange only: document.hidden after the change
    default_prevented: bool = False
    propagation_stopped: bool = False
    return_value: str = ""

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


Listener = Callable[[PageEvent], None]


class EventTarget:
    """Listener registry for one page object (window or document)."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: Dict[str, List[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        bucket = self._listeners.setdefault(event_type, [])
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        bucket = self._listeners.get(event_type, [])
        if listener in bucket:
            bucket.remove(listener)
        if not bucket:
            self._listeners.pop(event_type, None)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is None:
            return sum(len(b) for b in self._listeners.values())
        return len(self._listeners.get(event_type, []))

    def dispatch(self, event: PageEvent) -> PageEvent:
        for listener in list(self._listeners.get(event.type, [])):
            listener(event)
            if event.propagation_stopped:
                break
        return event


@dataclass
class WakeLockHandle:
    id: int
    released: bool = False


# ---------------------------------------------------------------------------
# Capability provider interface
# ---------------------------------------------------------------------------

class HostEnvironment(ABC):
    """One implementation per runtime the lock can be hosted in."""

    window: EventTarget
    document: EventTarget
    body_style: Dict[str, str]

    @property
    @abstractmethod
    def user_agent(self) -> str: ...

    @abstractmethod
    def supports(self, feature: Feature) -> bool: ...

    @property
    @abstractmethod
    def document_hidden(self) -> bool: ...

    @abstractmethod
    def set_body_style(self, prop: str, value: str) -> None: ...

    # wake lock
    @abstractmethod
    def request_wake_lock(self) -> WakeLockHandle: ...

    @abstractmethod
    def release_wake_lock(self, handle: WakeLockHandle) -> None: ...

    # haptics
    @abstractmethod
    def vibrate(self, pattern: List[int]) -> None: ...

    # orientation
    @abstractmethod
    def lock_orientation(self, orientation: str) -> None: ...

    @abstractmethod
    def unlock_orientation(self) -> None: ...

    # fullscreen
    @property
    @abstractmethod
    def is_fullscreen(self) -> bool: ...

    @abstractmethod
    def request_fullscreen(self) -> None: ...

    @abstractmethod
    def exit_fullscreen(self) -> None: ...

    # dialogs / notifications
    @abstractmethod
    def alert(self, message: str) -> None: ...

    @property
    @abstractmethod
    def notification_permission(self) -> str: ...

    @abstractmethod
    def show_notification(self, title: str, body: str, tag: str = "") -> None: ...
