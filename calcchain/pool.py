"""Decimal interning pools.

Calculation results repeat heavily in practice (prices, quantities, small
integers), so every result is passed through a pool that maps numerically
equal values to one shared instance.

Pools:
- DecimalPool: base class; returns values unchanged
- NoOpDecimalPool: explicit "no caching" pool
- DefaultDecimalPool: caches values with few fractional digits inside a
  bounded range around zero

A pooled value always compares equal to its input (a == pool.get(a)), but
it is not necessarily the same object and may differ in representation:
trailing zeros are stripped, so pool.get(Decimal("1.50")) is Decimal("1.5").
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from calcchain.arithmetic import EXACT_CONTEXT

logger = structlog.get_logger()


@dataclass(frozen=True)
class PoolConfig:
    """Caching policy for DefaultDecimalPool.

    Attributes:
        max_scale: Values with more fractional digits than this (after
            stripping trailing zeros) are never cached (default: 3)
        bound: Only values strictly inside (-bound, bound) are cached;
            +bound and -bound themselves map to pre-allocated singletons
            (default: 10,000)
    """

    max_scale: int = 3
    bound: int = 10_000

    def __post_init__(self) -> None:
        if self.max_scale < 0:
            raise ValueError(f"max_scale must be non-negative, got {self.max_scale}")
        if self.bound <= 0:
            raise ValueError(f"bound must be positive, got {self.bound}")


DEFAULT_POOL_CONFIG = PoolConfig()


class DecimalPool:
    """Base pool: no caching.

    Subclasses override get() and clear() to implement a caching policy.
    Implementations must be safe to call from several threads at once.
    """

    def get(self, value: Decimal | None) -> Decimal | None:
        """Return a value numerically equal to `value` (here: `value` itself)."""
        return value

    def clear(self) -> None:
        """Evict all cached entries."""


class NoOpDecimalPool(DecimalPool):
    """Pool that never caches.

    Install it when the memory footprint or lookup cost of caching is not
    wanted.
    """

    pass


class DefaultDecimalPool(DecimalPool):
    """Pool caching short values close to zero.

    With the default config, every value in (-10000, 10000) with at most 3
    fractional digits is cached:
        100 -> cached
        -9999 -> cached
        100.1230 -> cached (3 digits once trailing zeros are stripped)
        100.1234 -> not cached (4 digits)
        10001 -> not cached (out of range)

    Insertion uses dict.setdefault, which is atomic for Decimal keys, so two
    threads racing on the same value always end up sharing one instance.
    """

    def __init__(self, config: PoolConfig = DEFAULT_POOL_CONFIG) -> None:
        self._config = config
        self._upper = Decimal(config.bound)
        self._lower = Decimal(-config.bound)
        self._entries: dict[Decimal, Decimal] = {}

    @property
    def config(self) -> PoolConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DefaultDecimalPool({self._config}, entries={len(self._entries)})"

    def get(self, value: Decimal | None) -> Decimal | None:
        """Return the canonical instance for `value`.

        Returns:
            - None for None
            - the normalized value, uncached, if it has too many fractional
              digits or lies outside the cached range
            - the +bound / -bound singleton for values equal to either bound
            - otherwise the shared cached instance
        """
        if value is None:
            return None

        value = value.normalize(context=EXACT_CONTEXT)

        if -value.as_tuple().exponent > self._config.max_scale:  # type: ignore[operator]
            return value

        if value == self._upper:
            return self._upper
        if value > self._upper:
            return value
        if value == self._lower:
            return self._lower
        if value < self._lower:
            return value

        return self._entries.setdefault(value, value)

    def clear(self) -> None:
        evicted = len(self._entries)
        self._entries.clear()
        logger.debug("decimal_pool_cleared", evicted=evicted)


# Process-wide default instance
DEFAULT_POOL = DefaultDecimalPool()


__all__ = [
    "PoolConfig",
    "DEFAULT_POOL_CONFIG",
    "DecimalPool",
    "NoOpDecimalPool",
    "DefaultDecimalPool",
    "DEFAULT_POOL",
]
