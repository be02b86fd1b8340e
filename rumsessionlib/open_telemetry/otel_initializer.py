"""OpenTelemetry initialization with session identity and span filtering.

This module provides the OtelInitializer class that wires a SessionManager and a
span filter into a TracerProvider:

- every started span is stamped with the current session id,
- every session rotation is recorded as a span,
- every exported batch goes through the configured span filter.
"""

import logging
from logging import Logger
from threading import Lock
from typing import Callable, Optional

from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)

from rumsessionlib.open_telemetry.configurator import build_span_filter
from rumsessionlib.open_telemetry.session_id_change_tracer import SessionIdChangeTracer
from rumsessionlib.open_telemetry.session_id_span_appender import SessionIdSpanAppender
from rumsessionlib.open_telemetry.span_filter_builder import SpanFilterBuilder
from rumsessionlib.open_telemetry.span_filter_config import SpanFilterConfig
from rumsessionlib.session.protocols import Clock
from rumsessionlib.session.session_config import SessionConfig
from rumsessionlib.session.session_manager import SessionManager
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["INITIALIZATION"])

INSTRUMENTATION_NAME: str = "rumsessionlib"

SpanFilterCustomizer = Callable[[SpanFilterBuilder], SpanFilterBuilder]


class OtelInitializer:
    """
    Installs session identity and span filtering on a TracerProvider.

    Thread-safe singleton pattern for initialization: the first call wires the
    provider, later calls return the same SessionManager.
    """

    _session_manager: Optional[SessionManager] = None
    _lock: Lock = Lock()
    _logger: Logger = logger

    @classmethod
    def initialize(
        cls,
        tracer_provider: TracerProvider,
        exporter: SpanExporter,
        *,
        session_config: Optional[SessionConfig] = None,
        filter_config: Optional[SpanFilterConfig] = None,
        customize_span_filter: Optional[SpanFilterCustomizer] = None,
        clock: Optional[Clock] = None,
        batch: bool = True,
    ) -> SessionManager:
        """
        Initialize session identity and span filtering.

        Args:
            tracer_provider: The tracer provider to configure
            exporter: The exporter receiving the filtered spans
            session_config: Optional configuration override. If None, loads from environment.
            filter_config: Optional configuration override. If None, loads from environment.
            customize_span_filter: Optional hook adding rules to the span filter builder
            clock: Optional clock override for the session manager
            batch: Export through a BatchSpanProcessor (True) or a SimpleSpanProcessor

        Returns:
            The session manager attached to the provider

        Raises:
            ValueError: If the session configuration is invalid. An invalid filter
                configuration is logged and filtering is skipped instead.
        """
        with cls._lock:
            if cls._session_manager is not None:
                cls._logger.debug("OtelInitializer already initialized")
                return cls._session_manager

            session_config = session_config or SessionConfig.from_environment()
            session_manager = SessionManager.from_config(session_config, clock=clock)

            tracer = tracer_provider.get_tracer(INSTRUMENTATION_NAME)
            session_manager.set_change_listener(SessionIdChangeTracer(tracer))
            tracer_provider.add_span_processor(SessionIdSpanAppender(session_manager))

            filtering_exporter = cls._create_filtering_exporter(
                exporter, filter_config, customize_span_filter
            )
            processor: SpanProcessor = (
                BatchSpanProcessor(filtering_exporter)
                if batch
                else SimpleSpanProcessor(filtering_exporter)
            )
            tracer_provider.add_span_processor(processor)

            cls._logger.info(
                "Session tracking initialized. Lifetime: %ss, inactivity timeout: %ss (%s), "
                "exporter: %s",
                session_config.lifetime_seconds,
                session_config.inactivity_timeout_seconds,
                session_config.inactivity_policy,
                type(exporter).__name__,
            )
            cls._session_manager = session_manager
            return session_manager

    @classmethod
    def _create_filtering_exporter(
        cls,
        exporter: SpanExporter,
        filter_config: Optional[SpanFilterConfig],
        customize_span_filter: Optional[SpanFilterCustomizer],
    ) -> SpanExporter:
        """
        Wrap the exporter with the configured span filter.

        Returns:
            The filtering exporter, or the exporter itself when the filter has no rules
        """
        filter_config = filter_config or SpanFilterConfig.from_environment()

        builder = SpanFilterBuilder()
        validation_errors = filter_config.validate()
        if validation_errors:
            cls._logger.warning(
                "Span filter configuration has validation errors: %s. "
                "Skipping configured span filtering.",
                validation_errors,
            )
        else:
            builder = build_span_filter(filter_config, builder)

        if customize_span_filter is not None:
            builder = customize_span_filter(builder)

        span_filter = builder.build()
        if span_filter.is_empty:
            cls._logger.debug("No span filter rules configured")
            return exporter

        return span_filter.apply(exporter)

    @classmethod
    def reset(cls) -> None:
        """
        Reset initialization state.

        FOR TESTING ONLY - allows re-initialization in test scenarios.
        """
        with cls._lock:
            cls._session_manager = None
