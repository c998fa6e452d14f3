"""Error classes for chained decimal calculations.

Each class identifies which part of the calculation contract was violated.
All errors are raised at the call that detects them and are never recovered
internally.
"""


class CalcError(Exception):
    """Base error for calcchain operations."""

    pass


class InvalidInputError(CalcError, ValueError):
    """Operand is not an exact numeric value (float, bool, str, NaN, ...)."""

    pass


class MissingArgumentError(InvalidInputError):
    """Operand is None."""

    pass


class InvalidStructureError(CalcError, ValueError):
    """Parentheses are unbalanced or a pending scope cannot be resolved."""

    pass


class UninitializedStateError(CalcError, RuntimeError):
    """Operation needs a value but the scope has none yet."""

    pass


class DivisionByZeroError(CalcError, ArithmeticError):
    """Division by zero."""

    pass


__all__ = [
    "CalcError",
    "InvalidInputError",
    "MissingArgumentError",
    "InvalidStructureError",
    "UninitializedStateError",
    "DivisionByZeroError",
]
