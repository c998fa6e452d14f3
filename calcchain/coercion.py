"""Conversion of caller-supplied operands to Decimal.

Only exact inputs are accepted: Decimal and integral numbers. Binary
floating-point values are rejected outright so that representation error
can never enter a calculation.
"""

from __future__ import annotations

import numbers
from decimal import Decimal
from typing import Any

from calcchain.errors import InvalidInputError, MissingArgumentError

# Anything to_decimal() accepts
Operand = int | Decimal


def to_decimal(value: Any) -> Decimal:
    """Convert an operand to Decimal.

    Args:
        value: Decimal or integral number

    Returns:
        The Decimal itself, or the exact Decimal of an integral value

    Raises:
        MissingArgumentError: If value is None
        InvalidInputError: If value is a float, bool, non-finite Decimal,
            or not a number at all
    """
    if value is None:
        raise MissingArgumentError("Operand must not be None")

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidInputError(f"Operand must be finite, got {value}")
        return value

    # bool is an int subclass but never a meaningful operand
    if isinstance(value, bool):
        raise InvalidInputError(f"Boolean is not a numeric operand: {value}")

    if isinstance(value, numbers.Integral):
        return Decimal(int(value))

    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
        raise InvalidInputError(
            f"Floating point operands are not supported ({type(value).__name__}); "
            "use Decimal or int"
        )

    raise InvalidInputError(f"Operand must be Decimal or int, got {type(value).__name__}")


__all__ = ["Operand", "to_decimal"]
