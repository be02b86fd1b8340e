"""OpenTelemetry SpanProcessor stamping spans with the current session.

The session identifier is read when the span starts, so a rotation that happens
while a span is running does not move that span to the new session.
"""

import logging
from typing import Optional

from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, Span, SpanProcessor
from typing_extensions import override

from rumsessionlib.open_telemetry.attribute_names import RumSessionAttributeNames
from rumsessionlib.open_telemetry.filtering_span_exporter import DEFAULT_FLUSH_TIMEOUT_MS
from rumsessionlib.session.session_manager import SessionManager
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["OPEN_TELEMETRY"])


class SessionIdSpanAppender(SpanProcessor):
    """
    SpanProcessor that adds the session identifier attribute to every started span.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        """
        Initialize the appender.

        Args:
            session_manager: Source of the current session identifier
        """
        self._session_manager = session_manager

    @override
    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        """
        Called when span starts - attach the current session identifier.

        Args:
            span: The span that started
            parent_context: Optional parent context
        """
        session_id = self._session_manager.current()
        span.set_attribute(RumSessionAttributeNames.SESSION_ID, session_id)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Stamped span '%s' with session id %s", span.name, session_id)

    @override
    def on_end(self, span: ReadableSpan) -> None:
        pass

    @override
    def shutdown(self) -> None:
        pass

    @override
    def force_flush(self, timeout_millis: int = DEFAULT_FLUSH_TIMEOUT_MS) -> bool:
        return True
