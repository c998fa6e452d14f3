"""Closure engine: chained calculations with grouping through callables.

A grouped sub-expression is a callable that receives a fresh Group, builds
on it and returns it. The group is evaluated immediately and its value is
combined into the enclosing expression, so every group is closed by
construction and parentheses can never be unbalanced:

    start_with(10).add(lambda g: g.with_(2).multiply(3)).result()
    # 10 + (2 * 3) = 16

    start_with(100).add(
        lambda g1: g1.with_(20).multiply(
            lambda g2: g2.with_(15).divide(lambda g3: g3.with_(3).add(2), 2)
        )
    ).result()
    # 100 + (20 * (15 / (3 + 2))) = 160.00

Plain operators on a Group need a value, set with with_(). Group operators
(those taking a callable) also work on a Group without a value, starting
from the operator's identity seed: 0 for add and subtract, 1 for multiply
and divide. So an uninitialised group's subtract(fn) yields -fn and its
divide(fn, scale) yields 1 / fn.

Top-level chains (GroupChain) are immutable; Group instances are mutable
and live only for the duration of one callable. Neither is thread-safe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from calcchain import settings
from calcchain.arithmetic import ONE, ZERO, Operator, combine, transform
from calcchain.coercion import Operand, to_decimal
from calcchain.errors import InvalidInputError, UninitializedStateError
from calcchain.trace import FormulaTrace, emit, render_binary, render_group, render_unary

ENGINE = "closure"

GroupFn = Callable[["Group"], "Group | None"]

# Identity seeds for group operators applied to a Group without a value
IDENTITY_SEEDS = {
    Operator.ADD: ZERO,
    Operator.SUBTRACT: ZERO,
    Operator.MULTIPLY: ONE,
    Operator.DIVIDE: ONE,
}


def evaluate_group(fn: GroupFn, trace: bool = False) -> tuple[Decimal, str | None]:
    """Run a group callable on a fresh Group and return its value.

    A callable returning None is taken to have built the Group it was given.

    Returns:
        Tuple of (group value, rendered formula or None when not tracing)

    Raises:
        InvalidInputError: If the callable returns something other than a Group
        UninitializedStateError: If the group never received a value
    """
    group = Group(trace=trace)
    returned = fn(group)
    if returned is None:
        returned = group
    elif not isinstance(returned, Group):
        raise InvalidInputError(
            f"Group callable must return a Group, got {type(returned).__name__}"
        )
    if returned.value is None:
        raise UninitializedStateError("Group has no value; start it with .with_(value)")
    return returned.value, returned.formula


class _Operators(ABC):
    """Operator surface shared by Group and GroupChain."""

    __slots__ = ()

    def add(self, operand: Operand | GroupFn) -> Self:
        """Add a number, or the value of a group callable."""
        return self._apply(Operator.ADD, operand)

    def subtract(self, operand: Operand | GroupFn) -> Self:
        """Subtract a number, or the value of a group callable."""
        return self._apply(Operator.SUBTRACT, operand)

    def multiply(self, operand: Operand | GroupFn) -> Self:
        """Multiply by a number, or by the value of a group callable."""
        return self._apply(Operator.MULTIPLY, operand)

    def divide(self, operand: Operand | GroupFn, scale: int) -> Self:
        """Divide by a number or group value, rounding HALF-UP to `scale` digits.

        Raises:
            DivisionByZeroError: If the divisor is zero
        """
        return self._apply(Operator.DIVIDE, operand, scale)

    def negate(self) -> Self:
        return self._unary(Operator.NEGATE)

    def abs(self) -> Self:
        return self._unary(Operator.ABS)

    def round(self, scale: int) -> Self:
        """Round HALF-UP to `scale` digits."""
        return self._unary(Operator.ROUND, scale)

    @abstractmethod
    def _apply(self, op: Operator, operand: Operand | GroupFn, scale: int | None = None) -> Self:
        """Apply a binary operator to a number or a group callable."""

    @abstractmethod
    def _unary(self, op: Operator, scale: int | None = None) -> Self:
        """Apply NEGATE, ABS or ROUND."""


class Group(_Operators):
    """Accumulator for one parenthesized sub-expression.

    Created by the engine for each group callable; do not keep a Group
    beyond the callable it was passed to.
    """

    __slots__ = ("_value", "_trace")

    def __init__(self, trace: bool = False) -> None:
        self._value: Decimal | None = None
        self._trace = FormulaTrace() if trace else None

    @property
    def value(self) -> Decimal | None:
        return self._value

    @property
    def formula(self) -> str | None:
        """Rendered formula of this group, None when not tracing."""
        if self._trace is None:
            return None
        return self._trace.render()

    def __repr__(self) -> str:
        return f"Group(value={self._value})"

    def with_(self, initial: Operand) -> Group:
        """Set the group's starting value."""
        self._value = to_decimal(initial)
        if self._trace is not None:
            self._trace = FormulaTrace(self._value)
        return self

    def _apply(self, op: Operator, operand: Operand | GroupFn, scale: int | None = None) -> Group:
        if callable(operand):
            nested, formula = evaluate_group(operand, trace=self._trace is not None)
            if self._value is None:
                left = IDENTITY_SEEDS[op]
                if self._trace is not None:
                    self._trace.value(left)
            else:
                left = self._value
            self._value = combine(op, left, nested, scale)
            if self._trace is not None:
                self._trace.group(op, formula or "", scale)
            return self

        current = self._require_value(op.value)
        other = to_decimal(operand)
        self._value = combine(op, current, other, scale)
        if self._trace is not None:
            self._trace.binary(op, other, scale)
        return self

    def _unary(self, op: Operator, scale: int | None = None) -> Group:
        self._value = transform(op, self._require_value(op.value), scale)
        if self._trace is not None:
            self._trace.unary(op, scale)
        return self

    def _require_value(self, action: str) -> Decimal:
        if self._value is None:
            raise UninitializedStateError(
                f"Cannot {action}: group must be initialized with .with_(value) first"
            )
        return self._value


@dataclass(frozen=True)
class GroupChain(_Operators):
    """Top-level calculation of the closure engine.

    Every operation returns a new GroupChain; call result() to read the
    final value.

    Attributes:
        value: Current value
        formula: Rendered formula so far, None when not tracing
    """

    value: Decimal
    formula: str | None = field(default=None, compare=False)

    def _apply(
        self, op: Operator, operand: Operand | GroupFn, scale: int | None = None
    ) -> GroupChain:
        tracing = self.formula is not None
        if callable(operand):
            nested, inner = evaluate_group(operand, trace=tracing)
            value = combine(op, self.value, nested, scale)
            step = render_group(op, inner or "", scale) if tracing else ""
        else:
            other = to_decimal(operand)
            value = combine(op, self.value, other, scale)
            step = render_binary(op, other, scale) if tracing else ""
        return GroupChain(value, self.formula + step if tracing else None)  # type: ignore[operator]

    def _unary(self, op: Operator, scale: int | None = None) -> GroupChain:
        value = transform(op, self.value, scale)
        if self.formula is None:
            return GroupChain(value)
        return GroupChain(value, render_unary(op, self.formula, scale))

    def result(self) -> Decimal:
        """Return the final value, passed through the installed pool."""
        if self.formula is not None:
            emit(ENGINE, self.formula, self.value)
        return settings.get_decimal_pool().get(self.value)  # type: ignore[return-value]


def start_with(initial: Operand | None = None) -> GroupChain:
    """Start a closure-grouped calculation.

    Args:
        initial: First value (default: 0)

    Raises:
        InvalidInputError: If initial is a float or otherwise not exact
    """
    value = ZERO if initial is None else to_decimal(initial)
    formula = str(value) if settings.is_trace_enabled() else None
    return GroupChain(value, formula)


__all__ = ["Group", "GroupChain", "GroupFn", "IDENTITY_SEEDS", "evaluate_group", "start_with"]
