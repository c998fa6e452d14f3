"""One-shot arithmetic on plain operands.

Shortcuts for calculations that need no grouping. Operands are coerced
like chain operands (no floats) and results pass through the installed
DecimalPool.

Usage:
    from calcchain import calculator

    calculator.add(10, 5, 3)                     # 18
    calculator.divide(100, 3, 2)                 # 33.33
    calculator.round(Decimal("3.14159"), 2)      # 3.14
"""

from __future__ import annotations

from decimal import Decimal

from calcchain import arithmetic, settings
from calcchain.coercion import Operand, to_decimal


def _pooled(value: Decimal) -> Decimal:
    return settings.get_decimal_pool().get(value)  # type: ignore[return-value]


def add(a: Operand, b: Operand, *others: Operand) -> Decimal:
    """a + b + others..."""
    total = arithmetic.add(to_decimal(a), to_decimal(b))
    for other in others:
        total = arithmetic.add(total, to_decimal(other))
    return _pooled(total)


def subtract(a: Operand, b: Operand) -> Decimal:
    return _pooled(arithmetic.subtract(to_decimal(a), to_decimal(b)))


def multiply(a: Operand, b: Operand, *others: Operand) -> Decimal:
    """a * b * others..."""
    product = arithmetic.multiply(to_decimal(a), to_decimal(b))
    for other in others:
        product = arithmetic.multiply(product, to_decimal(other))
    return _pooled(product)


def divide(a: Operand, b: Operand, scale: int) -> Decimal:
    """a / b rounded HALF-UP to `scale` digits.

    Raises:
        DivisionByZeroError: If b is zero
    """
    return _pooled(arithmetic.divide(to_decimal(a), to_decimal(b), scale))


def negate(a: Operand) -> Decimal:
    return _pooled(arithmetic.negate(to_decimal(a)))


def abs(a: Operand) -> Decimal:  # noqa: A001
    return _pooled(arithmetic.absolute(to_decimal(a)))


def round(a: Operand, scale: int) -> Decimal:  # noqa: A001
    """Round HALF-UP to `scale` digits."""
    return _pooled(arithmetic.round_half_up(to_decimal(a), scale))


__all__ = ["add", "subtract", "multiply", "divide", "negate", "abs", "round"]
