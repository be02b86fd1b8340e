"""Inactivity timer policies for session rotation.

Two idle-detection policies exist and they are not equivalent:

- RearmingTimeoutHandler: every session access re-arms the timer, so a session
  expires after the ceiling of idle time since it was last used.
- ExplicitStartTimeoutHandler: the timer only runs after the host explicitly
  starts it (e.g. when the application moves to the background) and every
  session access disarms it again.

Pick one per deployment through ``SessionConfig.inactivity_policy``.
"""

from enum import Enum
from typing import Optional

from rumsessionlib.session.protocols import Clock

NANOS_PER_SECOND: int = 1_000_000_000


class InactivityPolicy(str, Enum):
    REARM_ON_ACCESS = "rearm_on_access"
    EXPLICIT_START = "explicit_start"


class _InactivityTimer:
    def __init__(self, clock: Clock, timeout_nanos: int) -> None:
        if timeout_nanos <= 0:
            raise ValueError(f"timeout_nanos must be positive, got {timeout_nanos}")
        self._clock = clock
        self._timeout_nanos = timeout_nanos
        # None means no timer running
        self._timeout_start_nanos: Optional[int] = None

    @property
    def timeout_nanos(self) -> int:
        return self._timeout_nanos

    @property
    def is_armed(self) -> bool:
        return self._timeout_start_nanos is not None

    def has_timed_out(self) -> bool:
        start = self._timeout_start_nanos
        if start is None:
            return False
        return self._clock.nano_time() - start >= self._timeout_nanos

    def start(self) -> None:
        self._timeout_start_nanos = self._clock.nano_time()


class RearmingTimeoutHandler(_InactivityTimer):
    """Restarts the inactivity timer on every bump."""

    def bump(self) -> None:
        self.start()


class ExplicitStartTimeoutHandler(_InactivityTimer):
    """Runs the inactivity timer only between ``start()`` and the next bump."""

    def bump(self) -> None:
        self._timeout_start_nanos = None


def create_timeout_handler(
    policy: InactivityPolicy, clock: Clock, timeout_seconds: float
) -> RearmingTimeoutHandler | ExplicitStartTimeoutHandler:
    timeout_nanos = int(timeout_seconds * NANOS_PER_SECOND)
    if policy is InactivityPolicy.EXPLICIT_START:
        return ExplicitStartTimeoutHandler(clock=clock, timeout_nanos=timeout_nanos)
    return RearmingTimeoutHandler(clock=clock, timeout_nanos=timeout_nanos)
