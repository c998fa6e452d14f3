"""Exact Decimal arithmetic shared by both calculation engines.

Python's default decimal context rounds every result to 28 significant
digits. Calculations here must be exact except where a target scale is
given, so addition, subtraction, multiplication, negation and absolute
value run in an unbounded context, and division and rounding go through
explicit HALF-UP helpers.

Scale follows the usual definition: the number of digits after the radix
point, i.e. -exponent. Negative scales round to tens, hundreds, ...
"""

from __future__ import annotations

import decimal
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from calcchain.errors import DivisionByZeroError, InvalidInputError

# Never rounds add/sub/mul results. Must not be used for division.
EXACT_CONTEXT = decimal.Context(
    prec=decimal.MAX_PREC,
    rounding=ROUND_HALF_UP,
    Emax=decimal.MAX_EMAX,
    Emin=decimal.MIN_EMIN,
    traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
)

ZERO = Decimal(0)
ONE = Decimal(1)


def add(a: Decimal, b: Decimal) -> Decimal:
    """Exact a + b."""
    return EXACT_CONTEXT.add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    """Exact a - b."""
    return EXACT_CONTEXT.subtract(a, b)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    """Exact a * b."""
    return EXACT_CONTEXT.multiply(a, b)


def negate(a: Decimal) -> Decimal:
    return EXACT_CONTEXT.minus(a)


def absolute(a: Decimal) -> Decimal:
    return EXACT_CONTEXT.abs(a)


def check_scale(scale: object) -> int:
    """Validate a scale argument.

    Raises:
        InvalidInputError: If scale is not an int (bool is rejected too)
    """
    if isinstance(scale, bool) or not isinstance(scale, int):
        raise InvalidInputError(f"Scale must be an int, got {type(scale).__name__}")
    return scale


def divide(dividend: Decimal, divisor: Decimal, scale: int) -> Decimal:
    """Divide and round HALF-UP to exactly `scale` fractional digits.

    The quotient is computed from the exact integer ratios of both operands,
    so the only rounding step is the final one.

    Args:
        dividend: Numerator
        divisor: Denominator
        scale: Digits after the radix point in the result

    Returns:
        dividend / divisor with exponent -scale

    Raises:
        DivisionByZeroError: If divisor is zero
        InvalidInputError: If scale is not an int

    Examples:
        divide(Decimal(100), Decimal(3), 2) -> Decimal('33.33')
        divide(Decimal(2), Decimal(3), 0) -> Decimal('1')
    """
    check_scale(scale)
    if divisor.is_zero():
        raise DivisionByZeroError(f"Division by zero: {dividend} / {divisor}")

    num_n, num_d = dividend.as_integer_ratio()
    den_n, den_d = divisor.as_integer_ratio()
    numerator = num_n * den_d
    denominator = num_d * den_n
    if scale >= 0:
        numerator *= 10**scale
    else:
        denominator *= 10 ** (-scale)

    quotient, remainder = divmod(abs(numerator), abs(denominator))
    # HALF-UP: ties round away from zero
    if 2 * remainder >= abs(denominator):
        quotient += 1
    if (numerator < 0) != (denominator < 0):
        quotient = -quotient

    return Decimal(quotient).scaleb(-scale, context=EXACT_CONTEXT)


def round_half_up(value: Decimal, scale: int) -> Decimal:
    """Round to `scale` fractional digits, HALF-UP.

    Raises:
        InvalidInputError: If scale is not an int
    """
    check_scale(scale)
    exponent = ONE.scaleb(-scale, context=EXACT_CONTEXT)
    return value.quantize(exponent, rounding=ROUND_HALF_UP, context=EXACT_CONTEXT)


class Operator(Enum):
    """Operators a scope can apply to the value of a nested scope."""

    NONE = "none"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    ROUND = "round"
    NEGATE = "negate"
    ABS = "abs"

    @property
    def needs_scale(self) -> bool:
        return self in (Operator.DIVIDE, Operator.ROUND)


def combine(op: Operator, left: Decimal, right: Decimal, scale: int | None = None) -> Decimal:
    """Apply a binary operator: left op right.

    Args:
        op: ADD, SUBTRACT, MULTIPLY or DIVIDE
        left: Left operand
        right: Right operand
        scale: Result scale, required for DIVIDE

    Raises:
        DivisionByZeroError: If op is DIVIDE and right is zero
        ValueError: If op is not a binary operator
    """
    if op is Operator.ADD:
        return add(left, right)
    if op is Operator.SUBTRACT:
        return subtract(left, right)
    if op is Operator.MULTIPLY:
        return multiply(left, right)
    if op is Operator.DIVIDE:
        return divide(left, right, scale)  # type: ignore[arg-type]
    raise ValueError(f"Not a binary operator: {op}")


def transform(op: Operator, value: Decimal, scale: int | None = None) -> Decimal:
    """Apply a unary operator: NEGATE, ABS or ROUND (which needs `scale`)."""
    if op is Operator.NEGATE:
        return negate(value)
    if op is Operator.ABS:
        return absolute(value)
    if op is Operator.ROUND:
        return round_half_up(value, scale)  # type: ignore[arg-type]
    raise ValueError(f"Not a unary operator: {op}")


__all__ = [
    "Operator",
    "combine",
    "transform",
    "EXACT_CONTEXT",
    "ZERO",
    "ONE",
    "add",
    "subtract",
    "multiply",
    "negate",
    "absolute",
    "check_scale",
    "divide",
    "round_half_up",
]
