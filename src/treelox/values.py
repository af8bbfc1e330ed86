"""
Runtime values.

A Value pairs the raw Python datum with its language type. Values are
immutable and compare structurally.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueType(Enum):
    """The four runtime types of the language."""
    BOOLEAN = "boolean"
    NIL = "nil"
    NUMBER = "number"
    STRING = "string"


@dataclass(frozen=True)
class Value:
    """
    A runtime value with type information.

    The `data` field holds the Python object (bool, None, float or str).
    """
    data: Any
    type: ValueType

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.type.name})"

    def __str__(self) -> str:
        """Display form: strings are quoted, everything else as printed."""
        if self.type == ValueType.STRING:
            return f'"{self.data}"'
        return self.stringify()

    def is_truthy(self) -> bool:
        """Check if this value is truthy in boolean context."""
        if self.type == ValueType.NIL:
            return False
        if self.type == ValueType.BOOLEAN:
            return bool(self.data)
        if self.type == ValueType.NUMBER:
            return self.data != 0.0
        # Strings are always truthy, even when empty
        return True

    def stringify(self) -> str:
        """The text `print` writes for this value."""
        if self.type == ValueType.NIL:
            return "nil"
        if self.type == ValueType.BOOLEAN:
            return "true" if self.data else "false"
        if self.type == ValueType.NUMBER:
            return format_number(self.data)
        return self.data

    @property
    def is_number(self) -> bool:
        return self.type == ValueType.NUMBER


def format_number(x: float) -> str:
    """Format a float without exponent; integral values drop the decimal point."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x.is_integer():
        return str(int(x))
    text = repr(x)
    if 'e' in text:
        # Positional form of the shortest round-tripping repr
        text = format(Decimal(text), 'f')
    return text


# Convenience constructors

def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueType.BOOLEAN)


def number_val(x: float) -> Value:
    """Create a number value."""
    return Value(float(x), ValueType.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueType.STRING)


NIL = Value(None, ValueType.NIL)


def nil_val() -> Value:
    """The nil value."""
    return NIL
