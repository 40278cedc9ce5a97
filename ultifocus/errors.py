"""
Usage errors raised by the lock engine. Environment degradations are never
raised past the lock core; see host.base.HostError.
"""


class UltiFocusError(Exception):
    pass


class AlreadyActiveError(UltiFocusError):
    def __init__(self, message: str = "UltiFocus session already active"):
        super().__init__(message)


class NoClientAttachedError(UltiFocusError):
    def __init__(self, message: str = "No client attached"):
        super().__init__(message)


class LockedSessionError(UltiFocusError):
    """Pause and reset are refused while a lock session runs; use the emergency exit."""

    def __init__(self, action: str):
        super().__init__(
            f"UltiFocus is locked: cannot {action} during UltiFocus mode. "
            "Use the emergency exit if you must quit."
        )
        self.action = action
