"""Chained arbitrary-precision decimal calculations.

Two ways to group sub-expressions:
- start(): explicit parentheses (add_parenthesis_then ... right_parenthesis)
- start_with(): groups passed as callables (add(lambda g: g.with_(2)...))
"""

from calcchain.chain import ChainNode, start
from calcchain.errors import (
    CalcError,
    DivisionByZeroError,
    InvalidInputError,
    InvalidStructureError,
    MissingArgumentError,
    UninitializedStateError,
)
from calcchain.group import Group, GroupChain, start_with
from calcchain.pool import DecimalPool, DefaultDecimalPool, NoOpDecimalPool, PoolConfig

__version__ = "0.1.0"
__all__ = [
    "ChainNode",
    "start",
    "Group",
    "GroupChain",
    "start_with",
    "DecimalPool",
    "DefaultDecimalPool",
    "NoOpDecimalPool",
    "PoolConfig",
    "CalcError",
    "DivisionByZeroError",
    "InvalidInputError",
    "InvalidStructureError",
    "MissingArgumentError",
    "UninitializedStateError",
    "__version__",
]
