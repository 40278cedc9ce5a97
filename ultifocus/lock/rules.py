"""
Shortcut Rules — declarative table of the keyboard shortcuts a lock session
blocks. Each rule names the escape route it closes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..host.base import PageEvent


@dataclass(frozen=True)
class ShortcutRule:
    name: str
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    description: str = ""

    def matches(self, event: PageEvent) -> bool:
        if event.key.lower() != self.key.lower():
            return False
        if self.ctrl and not event.ctrl_key:
            return False
        if self.shift and not event.shift_key:
            return False
        if self.alt and not event.alt_key:
            return False
        return True


BLOCKED_SHORTCUTS: List[ShortcutRule] = [
    ShortcutRule("close_tab", "w", ctrl=True, description="Ctrl+W closes the tab"),
    ShortcutRule("new_tab", "t", ctrl=True, description="Ctrl+T opens a new tab"),
    ShortcutRule("new_window", "n", ctrl=True, description="Ctrl+N opens a new window"),
    ShortcutRule("new_incognito_window", "n", ctrl=True, shift=True,
                 description="Ctrl+Shift+N opens an incognito window"),
    ShortcutRule("close_window", "F4", alt=True, description="Alt+F4 closes the window"),
    ShortcutRule("fullscreen_toggle", "F11", description="F11 leaves the fullscreen we control"),
]


def match_blocked_shortcut(event: PageEvent) -> Optional[ShortcutRule]:
    """Return the first rule *event* triggers, or None."""
    for rule in BLOCKED_SHORTCUTS:
        if rule.matches(event):
            return rule
    return None
