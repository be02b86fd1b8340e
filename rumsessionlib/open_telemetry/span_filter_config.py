"""Configuration model for OpenTelemetry span filtering.

This module provides immutable configuration for span filtering behavior,
loaded from environment variables with validation.
"""

import os
from dataclasses import dataclass, field
from typing import ClassVar

from rumsessionlib.open_telemetry.attribute_keys import AttributeKey, AttributeType

# Environment variable names
ENV_VAR_ENABLED: str = "OTEL_SPAN_FILTER_ENABLED"
ENV_VAR_EXCLUDED_NAMES: str = "OTEL_EXCLUDED_SPAN_NAMES"
ENV_VAR_EXCLUDED_PREFIXES: str = "OTEL_EXCLUDED_SPAN_PREFIXES"
ENV_VAR_REMOVED_ATTRIBUTES: str = "OTEL_SPAN_FILTER_REMOVED_ATTRIBUTES"

# Boolean parsing
_TRUTHY_VALUES: frozenset[str] = frozenset(("true", "1", "yes", "on"))


def _parse_bool(value: str) -> bool:
    """
    Parse boolean value from string.

    Args:
        value: String value to parse

    Returns:
        True if value is in truthy set (case-insensitive), False otherwise
    """
    return value.lower() in _TRUTHY_VALUES


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_attribute_key(value: str) -> AttributeKey:
    """
    Parse a ``name:type`` item; a bare name is a string attribute.

    The type tag follows the last colon, so a name that itself contains a colon
    must carry an explicit type (``net:peer:string``).

    Raises:
        ValueError: If the type tag is unknown
    """
    name, separator, type_tag = value.rpartition(":")
    if not separator:
        return AttributeKey(value, AttributeType.STRING)
    return AttributeKey(name.strip(), AttributeType.parse(type_tag))


@dataclass(frozen=True)
class SpanFilterConfig:
    """
    Immutable configuration for span filtering behavior.

    Loaded from environment variables with sensible defaults.
    """

    enabled: bool
    excluded_span_names: frozenset[str] = frozenset()
    excluded_span_prefixes: frozenset[str] = frozenset()
    removed_attributes: tuple[AttributeKey, ...] = ()
    # Items of OTEL_SPAN_FILTER_REMOVED_ATTRIBUTES that could not be parsed
    invalid_attributes: tuple[str, ...] = field(default=(), compare=False)

    # Default values
    DEFAULT_ENABLED: ClassVar[bool] = True

    @classmethod
    def from_environment(cls) -> "SpanFilterConfig":
        """
        Load configuration from environment variables.

        Returns:
            Immutable configuration instance

        Environment Variables:
            OTEL_SPAN_FILTER_ENABLED: Enable/disable filtering
            OTEL_EXCLUDED_SPAN_NAMES: Comma-separated exact span names
            OTEL_EXCLUDED_SPAN_PREFIXES: Comma-separated span name prefixes
            OTEL_SPAN_FILTER_REMOVED_ATTRIBUTES: Comma-separated name:type attributes;
                names containing a colon need an explicit type, e.g. net:peer:string
        """
        # Parse enabled flag
        enabled_str = os.environ.get(ENV_VAR_ENABLED, str(cls.DEFAULT_ENABLED))
        enabled = _parse_bool(enabled_str)

        # Parse span names and prefixes
        excluded_span_names = frozenset(
            _parse_list(os.environ.get(ENV_VAR_EXCLUDED_NAMES, ""))
        )
        excluded_span_prefixes = frozenset(
            _parse_list(os.environ.get(ENV_VAR_EXCLUDED_PREFIXES, ""))
        )

        # Parse removed attributes
        removed_attributes: list[AttributeKey] = []
        invalid_attributes: list[str] = []
        for item in _parse_list(os.environ.get(ENV_VAR_REMOVED_ATTRIBUTES, "")):
            try:
                removed_attributes.append(_parse_attribute_key(item))
            except ValueError:
                invalid_attributes.append(item)

        return cls(
            enabled=enabled,
            excluded_span_names=excluded_span_names,
            excluded_span_prefixes=excluded_span_prefixes,
            removed_attributes=tuple(removed_attributes),
            invalid_attributes=tuple(invalid_attributes),
        )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors: list[str] = []

        for item in self.invalid_attributes:
            allowed = ", ".join(t.value for t in AttributeType)
            errors.append(
                f"{ENV_VAR_REMOVED_ATTRIBUTES} item {item!r} has an unknown type, "
                f"expected name:type with type one of {allowed} "
                "(a name containing a colon needs an explicit type)"
            )

        for key in self.removed_attributes:
            if not key.name:
                errors.append(
                    f"{ENV_VAR_REMOVED_ATTRIBUTES} item {str(key)!r} has an empty name"
                )

        return errors
