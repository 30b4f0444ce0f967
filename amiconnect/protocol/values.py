"""
Field value coercion.

Every value on the wire is text. Decoded packets carry typed values instead,
chosen from the field name and the value itself:

- "yes" / "no" (any case) become booleans
- "(null)" and "-none-" (any case) become the empty string
- QualifyTimeout becomes a float (0.0 when unparsable)
- any field whose name contains "port" becomes an int (0 when unparsable)
- everything else is the trimmed string
"""

from __future__ import annotations

from typing import Final, Union

FieldValue = Union[str, bool, int, float]
"""Type of a decoded field value."""

_TRUE_VALUE: Final[str] = "yes"
_FALSE_VALUE: Final[str] = "no"
_EMPTY_VALUES: Final[frozenset[str]] = frozenset({"(null)", "-none-"})


def _to_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def coerce_value(name: str, value: str) -> FieldValue:
    """
    Convert a raw field value into a typed value.

    Args:
        name: Field name the value belongs to.
        value: Raw value as received.

    Returns:
        Boolean, empty string, float, int or the trimmed string.

    Example:
        >>> coerce_value("Dynamic", "YES")
        True
        >>> coerce_value("IPport", "5060")
        5060
        >>> coerce_value("IPport", "abc")
        0
    """
    lowered = value.lower()

    if lowered == _TRUE_VALUE:
        return True
    if lowered == _FALSE_VALUE:
        return False
    if lowered in _EMPTY_VALUES:
        return ""
    if name == "QualifyTimeout":
        return _to_float(value)
    if "port" in name.lower():
        return _to_int(value)

    return value.strip()


def encode_value(value: FieldValue) -> str:
    """Render a value for an outgoing request line."""
    if value is True:
        return "yes"
    if value is False:
        return "no"
    return str(value)
