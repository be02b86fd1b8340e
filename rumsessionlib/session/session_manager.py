import logging
import threading
from typing import Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator, RandomIdGenerator
from opentelemetry.trace import format_trace_id

from rumsessionlib.session.clock import DEFAULT_CLOCK
from rumsessionlib.session.protocols import (
    Clock,
    SessionIdChangeListener,
    SessionIdTimeoutHandler,
)
from rumsessionlib.session.session_config import SessionConfig
from rumsessionlib.session.timeout_handlers import (
    NANOS_PER_SECOND,
    InactivityPolicy,
    create_timeout_handler,
)
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["SESSION"])


class SessionManager:
    """Owns the current session identifier and rotates it when it expires.

    Responsibilities:
    - Hand out a stable identifier to concurrent callers of ``current()``.
    - Replace it exactly once when the session outlives the lifetime ceiling or the
      inactivity handler reports a timeout.
    - Notify a single registered change listener about each rotation.

    Concurrency Strategy:
    - The identifier slot and its creation time are only written inside
      ``_compare_and_set``, under ``_lock``. Callers that raced on an expired session
      all try to swap the value they observed; only the first swap succeeds, the others
      see a mismatch and return the value the winner installed.
    - Only the winner updates the creation time and fires the listener, so the listener
      runs at most once per rotation.
    - The winner restarts the inactivity timer inside the swap; a caller that observes
      the new identifier therefore never sees the old timer state.

    The listener is invoked after the inactivity timer has been bumped, because it may
    create telemetry that must be attributed to the new session. Exceptions raised by
    the listener propagate to the caller of ``current()``.
    """

    def __init__(
        self,
        timeout_handler: SessionIdTimeoutHandler,
        *,
        lifetime_nanos: int,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        if lifetime_nanos <= 0:
            raise ValueError(f"lifetime_nanos must be positive, got {lifetime_nanos}")
        self._clock: Clock = clock or DEFAULT_CLOCK
        self._id_generator: IdGenerator = id_generator or RandomIdGenerator()
        self._timeout_handler = timeout_handler
        self._lifetime_nanos = lifetime_nanos
        self._lock = threading.Lock()
        self._change_listener: Optional[SessionIdChangeListener] = None
        self._value: str = self._create_new_id()
        self._create_time_nanos: int = self._clock.nano_time()
        logger.debug(
            "SessionManager initialized (lifetime=%dns, timeout_handler=%s)",
            lifetime_nanos,
            type(timeout_handler).__name__,
        )

    @classmethod
    def from_config(
        cls,
        config: SessionConfig,
        *,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> "SessionManager":
        """
        Create a session manager from configuration.

        Args:
            config: Session lifetime and inactivity settings
            clock: Optional clock override (monotonic clock by default)
            id_generator: Optional identifier source (random by default)

        Raises:
            ValueError: If the configuration is invalid
        """
        validation_errors = config.validate()
        if validation_errors:
            raise ValueError(f"Invalid session configuration: {validation_errors}")

        clock = clock or DEFAULT_CLOCK
        timeout_handler = create_timeout_handler(
            InactivityPolicy(config.inactivity_policy),
            clock=clock,
            timeout_seconds=config.inactivity_timeout_seconds,
        )
        return cls(
            timeout_handler,
            lifetime_nanos=int(config.lifetime_seconds * NANOS_PER_SECOND),
            clock=clock,
            id_generator=id_generator,
        )

    @property
    def timeout_handler(self) -> SessionIdTimeoutHandler:
        return self._timeout_handler

    def _create_new_id(self) -> str:
        # A session id has the same shape as a trace id: 128 random bits as 32 hex chars
        return format_trace_id(self._id_generator.generate_trace_id())

    def current(self) -> str:
        """
        Return the session identifier to use right now, rotating it if it expired.

        Returns:
            The 32-character hex session identifier
        """
        with self._lock:
            old_value = self._value
            create_time_nanos = self._create_time_nanos

        current_value = old_value
        session_id_changed = False

        if self._session_expired(create_time_nanos) or self._timeout_handler.has_timed_out():
            new_value = self._create_new_id()
            # False means another thread already rotated the session
            session_id_changed, current_value = self._compare_and_set(
                old_value, new_value
            )
            if session_id_changed:
                logger.debug("Session rotated: %s -> %s", old_value, current_value)

        self._timeout_handler.bump()

        # The listener may create spans, so it runs after the timer was bumped
        change_listener = self._change_listener
        if session_id_changed and change_listener is not None:
            change_listener(old_value, current_value)

        return current_value

    def _compare_and_set(self, expected: str, new_value: str) -> tuple[bool, str]:
        with self._lock:
            if self._value != expected:
                return False, self._value
            self._value = new_value
            self._create_time_nanos = self._clock.nano_time()
            self._timeout_handler.bump()
            return True, self._value

    def _session_expired(self, create_time_nanos: int) -> bool:
        elapsed_time = self._clock.nano_time() - create_time_nanos
        return elapsed_time >= self._lifetime_nanos

    def notify_activity_timeout_start(self) -> None:
        """Arm the inactivity timer, e.g. when the host application goes idle."""
        self._timeout_handler.start()

    def set_change_listener(
        self, change_listener: Optional[SessionIdChangeListener]
    ) -> None:
        """Replace the registered change listener; None removes it."""
        self._change_listener = change_listener

    def __str__(self) -> str:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"SessionManager(session_id={str(self)!r})"
