import logging

from opentelemetry.trace import Tracer

from rumsessionlib.open_telemetry.attribute_names import (
    RumSessionAttributeNames,
    RumSessionSpanNames,
)
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["OPEN_TELEMETRY"])


class SessionIdChangeTracer:
    """
    Session change listener that records each rotation as a span.

    The span is created after the rotation completed, so when a SessionIdSpanAppender
    is installed it carries the new session id next to the previous one.
    """

    def __init__(self, tracer: Tracer) -> None:
        self._tracer = tracer

    def __call__(self, old_session_id: str, new_session_id: str) -> None:
        logger.debug("Session changed from %s to %s", old_session_id, new_session_id)
        span = self._tracer.start_span(
            RumSessionSpanNames.SESSION_CHANGE,
            attributes={RumSessionAttributeNames.PREVIOUS_SESSION_ID: old_session_id},
        )
        span.end()
