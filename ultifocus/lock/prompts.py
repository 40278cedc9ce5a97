"""
Confirmation prompts for the emergency-exit protocol.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, List


def first_exit_warning(exit_attempts: int) -> str:
    return (
        "⚠️ EXIT ULTIFOCUS MODE?\n\n"
        "You are about to end your UltiFocus session early.\n\n"
        "❌ You will LOSE all progress and rewards for this session.\n"
        "❌ Your focus streak may be affected.\n\n"
        "Are you ABSOLUTELY SURE you want to quit?\n\n"
        f"(Exit attempts: {exit_attempts})"
    )


FINAL_EXIT_WARNING = (
    "🚨 FINAL WARNING!\n\n"
    "This is your last chance.\n\n"
    "Exiting will:\n"
    "• End your session immediately\n"
    "• Forfeit all XP and coins\n"
    "• Break your focus commitment\n\n"
    "Do you really want to quit?"
)


def stay_focused_alert(exit_attempts: int) -> str:
    return (
        "⚠️ Stay Focused!\n\n"
        "UltiFocus mode is active. Stay on this page to complete your session.\n\n"
        f"Exit attempts: {exit_attempts}"
    )


class ConfirmationPrompter(ABC):

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask the user to accept or decline *message*."""


class ScriptedPrompter(ConfirmationPrompter):
    """
    Replays pre-recorded answers in order; declines once they run out.
    The API layer builds one per emergency-exit request from the answers
    the client collected.
    """

    def __init__(self, answers: Iterable[bool] = ()):
        self._answers = deque(answers)
        self.asked: List[str] = []

    def confirm(self, message: str) -> bool:
        self.asked.append(message)
        if not self._answers:
            return False
        return bool(self._answers.popleft())
