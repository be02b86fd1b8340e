"""Fluent builder for span filtering and attribute rewriting.

Usage::

    span_filter = (
        SpanFilterBuilder()
        .reject_by_name(lambda name: name.startswith("health"))
        .reject_by_attribute(int_key("http.status_code"), lambda code: code == 404)
        .remove_attribute(string_key("enduser.id"))
        .replace_attribute(string_key("http.url"), strip_query)
        .build()
    )
    exporter = span_filter.apply(OTLPSpanExporter())

Rules are keyed by (attribute name, attribute type). Attribute predicates registered
for the same key accumulate; a replacement or removal registered for a key replaces
the previous one for that key. ``build()`` takes a snapshot, later builder changes do
not affect filters that were already built.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from opentelemetry.sdk.trace.export import SpanExporter

from rumsessionlib.open_telemetry.attribute_keys import AttributeKey
from rumsessionlib.open_telemetry.filtering_span_exporter import (
    AttributePredicate,
    AttributeTransform,
    FilteringSpanExporter,
    SpanNamePredicate,
)
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["SPAN_FILTER"])


def _check_key(key: AttributeKey) -> None:
    if not isinstance(key, AttributeKey):
        raise TypeError(f"key must be an AttributeKey, got {type(key).__name__}")


def _check_callable(name: str, value: Callable[..., Any]) -> None:
    if not callable(value):
        raise TypeError(f"{name} must be callable, got {type(value).__name__}")


class SpanFilter:
    """An immutable set of span rules that can decorate span exporters."""

    def __init__(
        self,
        reject_span_names_predicates: tuple[SpanNamePredicate, ...],
        reject_span_attributes_predicates: Mapping[
            AttributeKey, tuple[AttributePredicate, ...]
        ],
        span_attribute_replacements: Mapping[AttributeKey, AttributeTransform],
    ) -> None:
        self._reject_span_names_predicates = reject_span_names_predicates
        self._reject_span_attributes_predicates = reject_span_attributes_predicates
        self._span_attribute_replacements = span_attribute_replacements

    @property
    def is_empty(self) -> bool:
        return not (
            self._reject_span_names_predicates
            or self._reject_span_attributes_predicates
            or self._span_attribute_replacements
        )

    def apply(self, exporter: SpanExporter) -> FilteringSpanExporter:
        """
        Wrap an exporter so that every exported batch goes through these rules first.

        Args:
            exporter: The exporter receiving the surviving spans

        Returns:
            The decorated exporter
        """
        return FilteringSpanExporter(
            wrapped_exporter=exporter,
            reject_span_names_predicates=self._reject_span_names_predicates,
            reject_span_attributes_predicates=self._reject_span_attributes_predicates,
            span_attribute_replacements=self._span_attribute_replacements,
        )


class SpanFilterBuilder:
    """Collects span rules; every method returns the builder for chaining."""

    def __init__(self) -> None:
        self._reject_span_names_predicates: list[SpanNamePredicate] = []
        self._reject_span_attributes_predicates: dict[
            AttributeKey, list[AttributePredicate]
        ] = {}
        self._span_attribute_replacements: dict[AttributeKey, AttributeTransform] = {}

    def reject_by_name(self, predicate: SpanNamePredicate) -> "SpanFilterBuilder":
        """Drop spans whose name matches the predicate."""
        _check_callable("predicate", predicate)
        self._reject_span_names_predicates.append(predicate)
        return self

    def reject_by_attribute(
        self, key: AttributeKey, predicate: AttributePredicate
    ) -> "SpanFilterBuilder":
        """
        Drop spans carrying the attribute ``key`` with a value matching the predicate.

        Spans without that attribute, or with the same name under another type, are
        not affected.
        """
        _check_key(key)
        _check_callable("predicate", predicate)
        self._reject_span_attributes_predicates.setdefault(key, []).append(predicate)
        return self

    def remove_attribute(
        self, key: AttributeKey, predicate: Optional[AttributePredicate] = None
    ) -> "SpanFilterBuilder":
        """
        Remove the attribute ``key`` from exported spans.

        Args:
            key: Typed key of the attribute to remove
            predicate: If given, only values matching it are removed
        """
        if predicate is None:
            return self.replace_attribute(key, lambda value: None)

        _check_callable("predicate", predicate)
        return self.replace_attribute(
            key, lambda value: None if predicate(value) else value
        )

    def replace_attribute(
        self, key: AttributeKey, transform: AttributeTransform
    ) -> "SpanFilterBuilder":
        """
        Replace the value of the attribute ``key`` with ``transform(value)``.

        A transform returning None removes the attribute. Registering a second
        replacement or removal for the same key overrides the first one.
        """
        _check_key(key)
        _check_callable("transform", transform)
        if key in self._span_attribute_replacements:
            logger.debug("Overriding attribute replacement for %s", key)
        self._span_attribute_replacements[key] = transform
        return self

    def build(self) -> SpanFilter:
        """Snapshot the registered rules into an immutable SpanFilter."""
        return SpanFilter(
            reject_span_names_predicates=tuple(self._reject_span_names_predicates),
            reject_span_attributes_predicates=MappingProxyType(
                {
                    key: tuple(predicates)
                    for key, predicates in self._reject_span_attributes_predicates.items()
                }
            ),
            span_attribute_replacements=MappingProxyType(
                dict(self._span_attribute_replacements)
            ),
        )
