"""Protocol definitions for the session components.

These are the extension points of the session manager: the clock it reads,
the inactivity timer policy it consults, and the listener it notifies.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Time source in nanoseconds."""

    def nano_time(self) -> int:
        """Monotonic time in nanoseconds, only meaningful for measuring durations."""
        ...


@runtime_checkable
class SessionIdTimeoutHandler(Protocol):
    """
    Protocol for inactivity timer policies.

    The session manager asks the handler whether the session went stale,
    and bumps it once per ``current()`` call after any rotation.
    """

    def has_timed_out(self) -> bool:
        """
        Determine if the inactivity ceiling has been exceeded.

        Returns:
            True if the timer is armed and has run for at least the ceiling
        """
        ...

    def bump(self) -> None:
        """Record session activity."""
        ...

    def start(self) -> None:
        """Arm the inactivity timer from now."""
        ...


class SessionIdChangeListener(Protocol):
    """Callback invoked once per rotation with the superseded and the new identifier."""

    def __call__(self, old_session_id: str, new_session_id: str) -> None: ...
