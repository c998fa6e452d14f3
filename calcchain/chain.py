"""Bracket engine: chained calculations with explicit parentheses.

Without parentheses a chain evaluates strictly left to right:

    start(5).add(3).multiply(2).result()        # (5 + 3) * 2 = 16

Grouping is expressed with paired open/close calls. An open call records
the operator on the current scope, creates a child scope and returns it;
right_parenthesis() folds the child's value back into its parent and
returns the parent:

    start(10).add_parenthesis_then(2).multiply(3).right_parenthesis().result()
    # 10 + (2 * 3) = 16

Because open and close are separate calls interleaved with arbitrary other
calls, the bracket stack is kept as explicit parent/child links between
ChainNode objects. Each node has at most one open child; every open moves
the exposed node one level down and every close one level up.

Unbalanced parentheses are always detected: closing without a matching
open, or reading a result while scopes are open, raises
InvalidStructureError.

ChainNode is not thread-safe. A chain must be built and read by one thread.
"""

from __future__ import annotations

from decimal import Decimal

from calcchain import settings
from calcchain.arithmetic import ZERO, Operator, check_scale, combine, transform
from calcchain.coercion import Operand, to_decimal
from calcchain.errors import InvalidStructureError, UninitializedStateError
from calcchain.trace import FormulaTrace, emit

ENGINE = "bracket"


class ChainNode:
    """One scope of a bracketed calculation.

    Attributes:
        value: Current value of the scope, None until an operand is supplied
        pending: Operator to apply when the open child scope closes
        pending_scale: Scale for a pending DIVIDE or ROUND
        parent: Enclosing scope (None for the root)
        child: Open nested scope, if any
        closed: True once right_parenthesis() folded this scope into its
            parent; a closed scope rejects every further call
    """

    __slots__ = (
        "_value",
        "_pending",
        "_pending_scale",
        "_parent",
        "_child",
        "_trace",
        "_trace_start",
        "_closed",
    )

    def __init__(
        self,
        value: Decimal | None,
        trace: FormulaTrace | None = None,
        parent: ChainNode | None = None,
        trace_start: int = 0,
    ) -> None:
        self._value = value
        self._pending = Operator.NONE
        self._pending_scale: int | None = None
        self._parent = parent
        self._child: ChainNode | None = None
        self._trace = trace
        self._trace_start = trace_start
        self._closed = False

    @property
    def value(self) -> Decimal | None:
        return self._value

    @property
    def pending(self) -> Operator:
        return self._pending

    @property
    def pending_scale(self) -> int | None:
        return self._pending_scale

    @property
    def parent(self) -> ChainNode | None:
        return self._parent

    @property
    def child(self) -> ChainNode | None:
        return self._child

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def depth(self) -> int:
        """Number of open scopes above this node (0 for the root)."""
        depth = 0
        node = self._parent
        while node is not None:
            depth += 1
            node = node._parent
        return depth

    def __repr__(self) -> str:
        return (
            f"ChainNode(value={self._value}, pending={self._pending.name}, "
            f"depth={self.depth})"
        )

    # --- Plain operations ---

    def add(self, operand: Operand) -> ChainNode:
        """value = value + operand."""
        return self._binary(Operator.ADD, operand)

    def subtract(self, operand: Operand) -> ChainNode:
        """value = value - operand."""
        return self._binary(Operator.SUBTRACT, operand)

    def multiply(self, operand: Operand) -> ChainNode:
        """value = value * operand."""
        return self._binary(Operator.MULTIPLY, operand)

    def divide(self, operand: Operand, scale: int) -> ChainNode:
        """value = value / operand, rounded HALF-UP to `scale` digits.

        Raises:
            DivisionByZeroError: If operand is zero
        """
        return self._binary(Operator.DIVIDE, operand, scale)

    def negate(self) -> ChainNode:
        return self._unary(Operator.NEGATE)

    def abs(self) -> ChainNode:
        return self._unary(Operator.ABS)

    def round(self, scale: int) -> ChainNode:
        """Round the current value HALF-UP to `scale` digits."""
        return self._unary(Operator.ROUND, scale)

    # --- Opening parentheses ---

    def left_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open a plain group: the group's value replaces this scope's value."""
        return self._open(Operator.NONE, operand)

    def add_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open `+ (...)`."""
        return self._open(Operator.ADD, operand)

    def subtract_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open `- (...)`."""
        return self._open(Operator.SUBTRACT, operand)

    def multiply_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open `* (...)`."""
        return self._open(Operator.MULTIPLY, operand)

    def divide_parenthesis_then(
        self, operand: Operand | None = None, *, scale: int | None = None
    ) -> ChainNode:
        """Open `/ (...)`; the division rounds to `scale` when the group closes."""
        return self._open(Operator.DIVIDE, operand, scale)

    def round_parenthesis_then(
        self, operand: Operand | None = None, *, scale: int | None = None
    ) -> ChainNode:
        """Open `round(..., scale)`. The result replaces this scope's value."""
        return self._open(Operator.ROUND, operand, scale)

    def negate_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open `-(...)`. The result replaces this scope's value."""
        return self._open(Operator.NEGATE, operand)

    def abs_parenthesis_then(self, operand: Operand | None = None) -> ChainNode:
        """Open `abs(...)`. The result replaces this scope's value."""
        return self._open(Operator.ABS, operand)

    # --- Closing and reading ---

    def right_parenthesis(self) -> ChainNode:
        """Close this scope and fold its value into the parent.

        ADD, SUBTRACT, MULTIPLY and DIVIDE combine the parent's value with
        this scope's value (an unset parent counts as zero). NEGATE, ABS and
        ROUND replace the parent's value with op(this value). A plain group
        replaces the parent's value with this value.

        Returns:
            The parent scope

        Raises:
            InvalidStructureError: If there is no open parenthesis to close,
                a nested scope is still open, or a pending DIVIDE/ROUND has
                no scale
            UninitializedStateError: If this scope never received a value
            DivisionByZeroError: If a pending DIVIDE meets a zero value
        """
        self._check_open()
        parent = self._parent
        if parent is None:
            raise InvalidStructureError("Missing left parenthesis: no open scope to close")
        self._check_no_open_child()

        op, scale = parent._pending, parent._pending_scale
        if op.needs_scale and scale is None:
            raise InvalidStructureError(f"Missing scale for pending {op.value} operation")
        if self._value is None:
            raise UninitializedStateError("Cannot close parenthesis: scope has no value")

        if op is Operator.NONE:
            parent._value = self._value
        elif op in (Operator.NEGATE, Operator.ABS, Operator.ROUND):
            parent._value = transform(op, self._value, scale)
        else:
            left = parent._value if parent._value is not None else ZERO
            parent._value = combine(op, left, self._value, scale)

        if self._trace is not None:
            self._trace.close(op, scale)

        parent._child = None
        parent._pending = Operator.NONE
        parent._pending_scale = None
        self._parent = None
        self._closed = True
        return parent

    def result(self) -> Decimal:
        """Return the final value, passed through the installed pool.

        Raises:
            InvalidStructureError: If any parenthesis is still open, or this
                scope was already closed
            UninitializedStateError: If the chain never received a value
        """
        self._check_open()
        if self._child is not None or self._parent is not None:
            raise InvalidStructureError("Missing right parenthesis: formula has open scopes")
        if self._value is None:
            raise UninitializedStateError("Chain has no value")

        if self._trace is not None:
            emit(ENGINE, self._trace.render(), self._value)
        return settings.get_decimal_pool().get(self._value)  # type: ignore[return-value]

    # --- Internals ---

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidStructureError(
                "Scope already closed: continue with the node returned by right_parenthesis()"
            )

    def _check_no_open_child(self) -> None:
        if self._child is not None:
            raise InvalidStructureError(
                "Missing right parenthesis: nested scope is still open"
            )

    def _require_value(self, action: str) -> Decimal:
        if self._value is None:
            raise UninitializedStateError(f"Cannot {action}: scope has no value yet")
        return self._value

    def _binary(self, op: Operator, operand: Operand, scale: int | None = None) -> ChainNode:
        self._check_open()
        self._check_no_open_child()
        other = to_decimal(operand)
        self._value = combine(op, self._require_value(op.value), other, scale)
        if self._trace is not None:
            self._trace.binary(op, other, scale)
        return self

    def _unary(self, op: Operator, scale: int | None = None) -> ChainNode:
        self._check_open()
        self._check_no_open_child()
        self._value = transform(op, self._require_value(op.value), scale)
        if self._trace is not None:
            self._trace.unary(op, scale, self._trace_start)
        return self

    def _open(
        self, op: Operator, operand: Operand | None, scale: int | None = None
    ) -> ChainNode:
        self._check_open()
        self._check_no_open_child()
        if scale is not None:
            check_scale(scale)
        value = None if operand is None else to_decimal(operand)

        trace_start = 0
        if self._trace is not None:
            self._trace.open(op)
            trace_start = self._trace.mark()
            if value is not None:
                self._trace.value(value)

        child = ChainNode(value, self._trace, parent=self, trace_start=trace_start)
        self._child = child
        self._pending = op
        self._pending_scale = scale
        return child


def start(initial: Operand | None = None) -> ChainNode:
    """Start a bracketed calculation.

    Args:
        initial: First value. If omitted the chain starts without a value
            and must receive one through a parenthesis.

    Raises:
        InvalidInputError: If initial is a float or otherwise not exact
    """
    value = None if initial is None else to_decimal(initial)
    trace = FormulaTrace(value) if settings.is_trace_enabled() else None
    return ChainNode(value, trace)


__all__ = ["ChainNode", "start"]
