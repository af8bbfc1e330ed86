"""
Tests for runtime values.
"""

import math

import pytest
from treelox import Value, ValueType, bool_val, number_val, string_val, nil_val, NIL
from treelox.values import format_number


class TestValues:
    """Test value construction and equality."""

    def test_constructors(self):
        """Constructor helpers set the type."""
        assert number_val(3).type == ValueType.NUMBER
        assert number_val(3).data == 3.0
        assert string_val("s").type == ValueType.STRING
        assert bool_val(1) == Value(True, ValueType.BOOLEAN)
        assert nil_val() is NIL

    def test_structural_equality(self):
        """Values compare by type and data."""
        assert number_val(1) == number_val(1.0)
        assert number_val(1) != string_val("1")
        assert bool_val(False) != NIL

    def test_immutable(self):
        """Values are frozen."""
        with pytest.raises(AttributeError):
            number_val(1).data = 2.0

    def test_display(self):
        """str() quotes strings; repr shows the type."""
        assert str(string_val("hi")) == '"hi"'
        assert str(number_val(2)) == "2"
        assert repr(number_val(2)) == "Value(2.0, NUMBER)"


class TestTruthiness:
    """Test boolean context."""

    @pytest.mark.parametrize("value, truthy", [
        (NIL, False),
        (bool_val(False), False),
        (bool_val(True), True),
        (number_val(0), False),
        (number_val(-0.0), False),
        (number_val(0.001), True),
        (number_val(float("nan")), True),
        (string_val(""), True),
        (string_val("false"), True),
    ])
    def test_is_truthy(self, value, truthy):
        """Only nil, false and zero are falsey."""
        assert value.is_truthy() is truthy


class TestStringify:
    """Test the printed form of values."""

    def test_non_numbers(self):
        """nil, booleans and strings."""
        assert NIL.stringify() == "nil"
        assert bool_val(True).stringify() == "true"
        assert bool_val(False).stringify() == "false"
        assert string_val("raw text").stringify() == "raw text"

    @pytest.mark.parametrize("number, text", [
        (2.0, "2"),
        (-7.0, "-7"),
        (0.5, "0.5"),
        (123.25, "123.25"),
        (1e21, "1000000000000000000000"),
        (1e-7, "0.0000001"),
        (math.inf, "inf"),
        (-math.inf, "-inf"),
        (math.nan, "NaN"),
    ])
    def test_format_number(self, number, text):
        """Integral numbers drop the decimal point; no exponents."""
        assert format_number(number) == text
