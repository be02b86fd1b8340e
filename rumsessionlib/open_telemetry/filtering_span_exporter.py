import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.util.types import AttributeValue
from typing_extensions import override

from rumsessionlib.open_telemetry.attribute_keys import AttributeKey, attribute_type_of
from rumsessionlib.open_telemetry.modified_span import ModifiedReadableSpan
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["SPAN_FILTER"])

# Default timeout for force_flush in milliseconds (30 seconds)
DEFAULT_FLUSH_TIMEOUT_MS: int = 30000

SpanNamePredicate = Callable[[str], bool]
AttributePredicate = Callable[[Any], bool]
# Returning None removes the attribute
AttributeTransform = Callable[[Any], Any]


class FilteringSpanExporter(SpanExporter):
    """
    A SpanExporter that wraps another exporter and filters and rewrites spans.

    For every span of a batch, in order:

    1. The span is dropped if any span name predicate matches.
    2. The span is dropped if any attribute predicate matches an attribute the span
       carries under the exact (name, type) key of that predicate.
    3. If replacement rules exist, the span is copied with a new attribute mapping in
       which matching attributes are transformed or removed. Otherwise the original
       span object is forwarded as is.

    Exceptions raised by predicates or transforms are not caught: the whole export
    call fails. The rule collections are read-only, so one instance can export
    batches from several threads at once.
    """

    def __init__(
        self,
        wrapped_exporter: SpanExporter,
        reject_span_names_predicates: Sequence[SpanNamePredicate] = (),
        reject_span_attributes_predicates: Mapping[
            AttributeKey, Sequence[AttributePredicate]
        ] = MappingProxyType({}),
        span_attribute_replacements: Mapping[
            AttributeKey, AttributeTransform
        ] = MappingProxyType({}),
    ) -> None:
        """
        Initialize the filtering span exporter.

        Args:
            wrapped_exporter: The span exporter to wrap
            reject_span_names_predicates: Predicates over the span name, any match drops the span
            reject_span_attributes_predicates: Predicates over attribute values, per typed key
            span_attribute_replacements: Transforms over attribute values, per typed key
        """
        self._wrapped_exporter = wrapped_exporter
        self._reject_span_names_predicates = tuple(reject_span_names_predicates)
        self._reject_span_attributes_predicates = MappingProxyType(
            {key: tuple(p) for key, p in reject_span_attributes_predicates.items()}
        )
        self._span_attribute_replacements = MappingProxyType(
            dict(span_attribute_replacements)
        )

        logger.debug(
            "FilteringSpanExporter initialized around %s. "
            "Name predicates: %d, attribute predicates: %s, attribute replacements: %s",
            type(wrapped_exporter).__name__,
            len(self._reject_span_names_predicates),
            [str(key) for key in self._reject_span_attributes_predicates],
            [str(key) for key in self._span_attribute_replacements],
        )

    @property
    def wrapped_exporter(self) -> SpanExporter:
        return self._wrapped_exporter

    def _reject(self, span: ReadableSpan) -> bool:
        """
        Determine if a span should be dropped.

        Returns:
            True if the span matches a rejection rule
        """
        span_name = span.name

        for name_predicate in self._reject_span_names_predicates:
            if name_predicate(span_name):
                logger.debug("Filtered out span (name): %s", span_name)
                return True

        if not self._reject_span_attributes_predicates:
            return False

        attributes = span.attributes or {}
        for key, value_predicates in self._reject_span_attributes_predicates.items():
            if key.name not in attributes:
                continue
            value = attributes[key.name]
            if attribute_type_of(value) is not key.type:
                continue
            for value_predicate in value_predicates:
                if value_predicate(value):
                    logger.debug(
                        "Filtered out span (attribute %s): %s", key, span_name
                    )
                    return True

        return False

    def _modify(self, span: ReadableSpan) -> ReadableSpan:
        if not self._span_attribute_replacements:
            return span

        modified_attributes: dict[str, AttributeValue] = {}
        for name, value in (span.attributes or {}).items():
            key = AttributeKey.for_value(name, value)
            transform = (
                self._span_attribute_replacements.get(key) if key is not None else None
            )
            if transform is None:
                modified_attributes[name] = value
                continue
            new_value = transform(value)
            if new_value is not None:
                modified_attributes[name] = new_value

        return ModifiedReadableSpan(span, modified_attributes)

    @override
    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """
        Export spans, filtering and rewriting them first.

        Args:
            spans: The spans to export

        Returns:
            The result of the wrapped exporter, unchanged
        """
        modified_spans: list[ReadableSpan] = []
        for span in spans:
            if self._reject(span):
                continue
            modified_spans.append(self._modify(span))

        if len(modified_spans) < len(spans):
            logger.debug(
                "Filtered %d out of %d spans",
                len(spans) - len(modified_spans),
                len(spans),
            )

        return self._wrapped_exporter.export(modified_spans)

    @override
    def shutdown(self) -> None:
        """Shutdown the wrapped exporter."""
        return self._wrapped_exporter.shutdown()

    @override
    def force_flush(self, timeout_millis: int = DEFAULT_FLUSH_TIMEOUT_MS) -> bool:
        """Force flush the wrapped exporter."""
        return self._wrapped_exporter.force_flush(timeout_millis)
