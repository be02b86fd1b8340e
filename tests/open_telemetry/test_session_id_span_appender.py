from unittest.mock import MagicMock

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from rumsessionlib.open_telemetry.attribute_names import (
    RumSessionAttributeNames,
    RumSessionSpanNames,
)
from rumsessionlib.open_telemetry.session_id_change_tracer import SessionIdChangeTracer
from rumsessionlib.open_telemetry.session_id_span_appender import SessionIdSpanAppender


def test_on_start_sets_session_id_attribute() -> None:
    session_manager = MagicMock()
    session_manager.current.return_value = "a" * 32
    span = MagicMock()

    appender = SessionIdSpanAppender(session_manager)
    appender.on_start(span)

    span.set_attribute.assert_called_once_with(
        RumSessionAttributeNames.SESSION_ID, "a" * 32
    )
    assert appender.force_flush() is True


def test_change_tracer_emits_session_change_span() -> None:
    tracer_provider = TracerProvider()
    exporter = InMemorySpanExporter()
    tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))

    listener = SessionIdChangeTracer(tracer_provider.get_tracer(__name__))
    listener("1" * 32, "2" * 32)

    (span,) = exporter.get_finished_spans()
    assert span.name == RumSessionSpanNames.SESSION_CHANGE
    assert dict(span.attributes or {}) == {
        RumSessionAttributeNames.PREVIOUS_SESSION_ID: "1" * 32
    }
