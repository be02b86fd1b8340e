from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from rumsessionlib.open_telemetry.attribute_keys import string_key
from rumsessionlib.open_telemetry.attribute_names import (
    RumSessionAttributeNames,
    RumSessionSpanNames,
)
from rumsessionlib.open_telemetry.otel_initializer import OtelInitializer
from rumsessionlib.open_telemetry.span_filter_builder import SpanFilterBuilder
from rumsessionlib.open_telemetry.span_filter_config import SpanFilterConfig
from rumsessionlib.session.session_config import SessionConfig
from rumsessionlib.session.timeout_handlers import InactivityPolicy

SESSION_CONFIG = SessionConfig(
    lifetime_seconds=4 * 60 * 60,
    inactivity_timeout_seconds=15 * 60,
    inactivity_policy=InactivityPolicy.REARM_ON_ACCESS,
)


@pytest.mark.usefixtures("reset_otel_initializer")
def test_spans_carry_session_id_and_are_filtered(fake_clock: Any) -> None:
    tracer_provider = TracerProvider()
    exporter = InMemorySpanExporter()
    session_manager = OtelInitializer.initialize(
        tracer_provider,
        exporter,
        session_config=SESSION_CONFIG,
        filter_config=SpanFilterConfig(
            enabled=True, excluded_span_names=frozenset({"ping"})
        ),
        customize_span_filter=lambda builder: builder.remove_attribute(
            string_key("enduser.id")
        ),
        clock=fake_clock,
        batch=False,
    )
    tracer = tracer_provider.get_tracer(__name__)

    with tracer.start_as_current_span("ping"):
        pass
    with tracer.start_as_current_span("checkout", attributes={"enduser.id": "u1"}):
        pass

    finished = exporter.get_finished_spans()
    assert [s.name for s in finished] == ["checkout"]
    attributes = dict(finished[0].attributes or {})
    assert attributes == {RumSessionAttributeNames.SESSION_ID: str(session_manager)}


@pytest.mark.usefixtures("reset_otel_initializer")
def test_session_rotation_is_recorded_as_span(fake_clock: Any) -> None:
    tracer_provider = TracerProvider()
    exporter = InMemorySpanExporter()
    session_manager = OtelInitializer.initialize(
        tracer_provider,
        exporter,
        session_config=SESSION_CONFIG,
        filter_config=SpanFilterConfig(enabled=False),
        clock=fake_clock,
        batch=False,
    )
    tracer = tracer_provider.get_tracer(__name__)

    with tracer.start_as_current_span("first"):
        pass
    first_session_id = str(session_manager)

    fake_clock.advance_seconds(15 * 60)
    with tracer.start_as_current_span("second"):
        pass
    second_session_id = str(session_manager)

    assert first_session_id != second_session_id
    finished = {s.name: dict(s.attributes or {}) for s in exporter.get_finished_spans()}
    assert set(finished) == {"first", RumSessionSpanNames.SESSION_CHANGE, "second"}
    assert finished["first"][RumSessionAttributeNames.SESSION_ID] == first_session_id
    assert finished["second"][RumSessionAttributeNames.SESSION_ID] == second_session_id
    assert finished[RumSessionSpanNames.SESSION_CHANGE] == {
        RumSessionAttributeNames.SESSION_ID: second_session_id,
        RumSessionAttributeNames.PREVIOUS_SESSION_ID: first_session_id,
    }


@pytest.mark.usefixtures("reset_otel_initializer")
def test_initialize_is_idempotent(fake_clock: Any) -> None:
    tracer_provider = TracerProvider()
    exporter = InMemorySpanExporter()

    first = OtelInitializer.initialize(
        tracer_provider,
        exporter,
        session_config=SESSION_CONFIG,
        filter_config=SpanFilterConfig(enabled=False),
        clock=fake_clock,
        batch=False,
    )
    second = OtelInitializer.initialize(tracer_provider, exporter)

    assert first is second


@pytest.mark.usefixtures("reset_otel_initializer")
def test_invalid_filter_config_skips_configured_rules(fake_clock: Any) -> None:
    tracer_provider = TracerProvider()
    exporter = InMemorySpanExporter()
    OtelInitializer.initialize(
        tracer_provider,
        exporter,
        session_config=SESSION_CONFIG,
        filter_config=SpanFilterConfig(
            enabled=True,
            excluded_span_names=frozenset({"ping"}),
            invalid_attributes=("x:long",),
        ),
        customize_span_filter=lambda builder: builder.reject_by_name(
            lambda name: name == "health"
        ),
        clock=fake_clock,
        batch=False,
    )
    tracer = tracer_provider.get_tracer(__name__)

    for name in ("ping", "health", "work"):
        with tracer.start_as_current_span(name):
            pass

    assert [s.name for s in exporter.get_finished_spans()] == ["ping", "work"]


@pytest.mark.usefixtures("reset_otel_initializer")
def test_invalid_session_config_raises(fake_clock: Any) -> None:
    with pytest.raises(ValueError, match="Invalid session configuration"):
        OtelInitializer.initialize(
            TracerProvider(),
            InMemorySpanExporter(),
            session_config=SessionConfig(
                lifetime_seconds=-1,
                inactivity_timeout_seconds=1,
                inactivity_policy=InactivityPolicy.EXPLICIT_START,
            ),
            filter_config=SpanFilterConfig(enabled=False),
            clock=fake_clock,
        )


def test_customizer_receives_the_builder() -> None:
    received: list[SpanFilterBuilder] = []

    def customize(builder: SpanFilterBuilder) -> SpanFilterBuilder:
        received.append(builder)
        return builder

    exporter = InMemorySpanExporter()
    result = OtelInitializer._create_filtering_exporter(
        exporter, SpanFilterConfig(enabled=False), customize
    )

    assert len(received) == 1
    # no rules: the exporter is used as is
    assert result is exporter
