"""Human-readable formula traces.

When tracing is enabled (see calcchain.settings), both engines record the
formula they evaluate, left to right, and log it once the result is read:

    10 + (2 * 3) = 16
    round(100 / 3[scale=4], 2) = 33.33

Tracing is a diagnostic side channel only; it never affects results.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from calcchain.arithmetic import Operator

logger = structlog.get_logger()

BINARY_SYMBOLS = {
    Operator.ADD: "+",
    Operator.SUBTRACT: "-",
    Operator.MULTIPLY: "*",
    Operator.DIVIDE: "/",
}

OPEN_TOKENS = {
    Operator.NONE: "(",
    Operator.ADD: " + (",
    Operator.SUBTRACT: " - (",
    Operator.MULTIPLY: " * (",
    Operator.DIVIDE: " / (",
    Operator.NEGATE: "-(",
    Operator.ABS: "abs(",
    Operator.ROUND: "round(",
}


def render_binary(op: Operator, operand: object, scale: int | None = None) -> str:
    """Render ` + 3`, ` / 3[scale=2]`, ..."""
    text = f" {BINARY_SYMBOLS[op]} {operand}"
    if op is Operator.DIVIDE:
        text += f"[scale={scale}]"
    return text


def render_unary(op: Operator, formula: str, scale: int | None = None) -> str:
    """Wrap everything rendered so far in a unary operator."""
    if op is Operator.NEGATE:
        return f"-({formula})"
    if op is Operator.ABS:
        return f"abs({formula})"
    if op is Operator.ROUND:
        return f"round({formula}, {scale})"
    raise ValueError(f"Not a unary operator: {op}")


def render_close(op: Operator, scale: int | None = None) -> str:
    if op is Operator.DIVIDE:
        return f")[scale={scale}]"
    if op is Operator.ROUND:
        return f", {scale})"
    return ")"


class FormulaTrace:
    """Mutable formula buffer shared by all scopes of one calculation."""

    __slots__ = ("_parts",)

    def __init__(self, initial: Decimal | None = None) -> None:
        self._parts: list[str] = []
        if initial is not None:
            self._parts.append(str(initial))

    def __str__(self) -> str:
        return self.render()

    def render(self) -> str:
        return "".join(self._parts)

    def value(self, value: Decimal) -> None:
        self._parts.append(str(value))

    def binary(self, op: Operator, operand: object, scale: int | None = None) -> None:
        self._parts.append(render_binary(op, operand, scale))

    def mark(self) -> int:
        """Position where the next scope's text starts."""
        return len(self._parts)

    def unary(self, op: Operator, scale: int | None = None, start: int = 0) -> None:
        """Wrap the text rendered since `start` in a unary operator."""
        inner = "".join(self._parts[start:])
        self._parts[start:] = [render_unary(op, inner, scale)]

    def open(self, op: Operator) -> None:
        self._parts.append(OPEN_TOKENS[op])

    def close(self, op: Operator, scale: int | None = None) -> None:
        self._parts.append(render_close(op, scale))

    def group(self, op: Operator, formula: str, scale: int | None = None) -> None:
        """Append a fully evaluated nested group: ` * (formula)`."""
        self._parts.append(render_group(op, formula, scale))


def render_group(op: Operator, formula: str, scale: int | None = None) -> str:
    return f"{OPEN_TOKENS[op]}{formula}{render_close(op, scale)}"


def emit(engine: str, formula: str, result: Decimal | None) -> None:
    """Log a completed calculation."""
    logger.debug(
        "formula_evaluated",
        engine=engine,
        formula=f"{formula} = {result}",
        result=str(result),
    )


__all__ = [
    "FormulaTrace",
    "render_binary",
    "render_unary",
    "render_close",
    "render_group",
    "emit",
]
