"""Type-tagged attribute keys.

OpenTelemetry Python stores span attributes as ``str -> value``. Filtering rules
address an attribute by the pair (name, declared type), where the declared type is
derived from the stored value. ``("x", STRING)`` and ``("x", INT)`` are different keys
and a rule registered for one never sees the other.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence


class AttributeType(str, Enum):
    STRING = "string"
    BOOLEAN = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING_ARRAY = "string_array"
    BOOLEAN_ARRAY = "bool_array"
    INT_ARRAY = "int_array"
    DOUBLE_ARRAY = "double_array"

    @classmethod
    def parse(cls, value: str) -> "AttributeType":
        """
        Parse a type tag such as ``"string"`` or ``"int_array"``.

        Raises:
            ValueError: If the tag is unknown
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(
                f"Unknown attribute type {value!r}, expected one of {allowed}"
            )


_ARRAY_TYPES: dict[AttributeType, AttributeType] = {
    AttributeType.STRING: AttributeType.STRING_ARRAY,
    AttributeType.BOOLEAN: AttributeType.BOOLEAN_ARRAY,
    AttributeType.INT: AttributeType.INT_ARRAY,
    AttributeType.DOUBLE: AttributeType.DOUBLE_ARRAY,
}


def _scalar_type_of(value: Any) -> Optional[AttributeType]:
    # bool is a subclass of int
    if isinstance(value, bool):
        return AttributeType.BOOLEAN
    if isinstance(value, int):
        return AttributeType.INT
    if isinstance(value, float):
        return AttributeType.DOUBLE
    if isinstance(value, str):
        return AttributeType.STRING
    return None


def attribute_type_of(value: Any) -> Optional[AttributeType]:
    """
    Determine the declared type of a stored attribute value.

    Sequences are classified by their first non-None element. Empty or all-None
    sequences and unsupported values have no declared type.

    Returns:
        The attribute type, or None if it cannot be determined
    """
    scalar_type = _scalar_type_of(value)
    if scalar_type is not None:
        return scalar_type
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        for element in value:
            if element is None:
                continue
            element_type = _scalar_type_of(element)
            if element_type is None:
                return None
            return _ARRAY_TYPES[element_type]
    return None


@dataclass(frozen=True)
class AttributeKey:
    """Identity of an attribute: its name together with its declared type."""

    name: str
    type: AttributeType

    @classmethod
    def for_value(cls, name: str, value: Any) -> Optional["AttributeKey"]:
        """Key under which a stored ``name=value`` attribute is matched, if any."""
        attribute_type = attribute_type_of(value)
        if attribute_type is None:
            return None
        return cls(name=name, type=attribute_type)

    def __str__(self) -> str:
        return f"{self.name}:{self.type.value}"


def string_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.STRING)


def bool_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.BOOLEAN)


def int_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.INT)


def double_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.DOUBLE)


def string_array_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.STRING_ARRAY)


def bool_array_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.BOOLEAN_ARRAY)


def int_array_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.INT_ARRAY)


def double_array_key(name: str) -> AttributeKey:
    return AttributeKey(name, AttributeType.DOUBLE_ARRAY)
