"""Process-wide calculation settings.

Holds the installed DecimalPool and the formula trace flag. Both start from
environment variables:
- CALCCHAIN_TRACE: Enable formula tracing (default: false)
- CALCCHAIN_POOL: "default" for DefaultDecimalPool, "none" for
  NoOpDecimalPool (default: default). Any other value logs a warning and
  falls back to the default pool.

Changing these settings is an administrative action meant for startup or
tests. It is not safe to toggle them while other threads are computing and
expect a stable setting for those computations.
"""

from __future__ import annotations

import os

import structlog

from calcchain.pool import DEFAULT_POOL, DecimalPool, NoOpDecimalPool

logger = structlog.get_logger()

TRACE_ENV_VAR = "CALCCHAIN_TRACE"
POOL_ENV_VAR = "CALCCHAIN_POOL"


def _trace_from_env() -> bool:
    return os.environ.get(TRACE_ENV_VAR, "false").lower() in ("true", "1", "yes")


def _pool_from_env() -> DecimalPool:
    choice = os.environ.get(POOL_ENV_VAR, "default").lower()
    if choice == "default":
        return DEFAULT_POOL
    if choice == "none":
        return NoOpDecimalPool()
    logger.warning(
        "invalid_pool_setting",
        variable=POOL_ENV_VAR,
        value=choice,
        expected=["default", "none"],
        fallback="default",
    )
    return DEFAULT_POOL


_pool: DecimalPool = _pool_from_env()
_trace_enabled: bool = _trace_from_env()


def get_decimal_pool() -> DecimalPool:
    """Return the pool every calculation result passes through."""
    return _pool


def set_decimal_pool(pool: DecimalPool | None) -> None:
    """Install a pool process-wide.

    Args:
        pool: Pool to install. None installs a NoOpDecimalPool.

    Raises:
        TypeError: If pool is not a DecimalPool
    """
    global _pool
    if pool is None:
        pool = NoOpDecimalPool()
    if not isinstance(pool, DecimalPool):
        raise TypeError(f"Expected DecimalPool, got {type(pool).__name__}")
    _pool = pool
    logger.info("decimal_pool_installed", pool=type(pool).__name__)


def clear_decimal_pool() -> None:
    """Evict everything cached by the installed pool."""
    _pool.clear()


def is_trace_enabled() -> bool:
    return _trace_enabled


def enable_trace() -> None:
    """Log a formula_evaluated event for every completed calculation."""
    global _trace_enabled
    _trace_enabled = True
    logger.info("trace_toggled", enabled=True)


def disable_trace() -> None:
    global _trace_enabled
    _trace_enabled = False
    logger.info("trace_toggled", enabled=False)


def reset() -> None:
    """Restore the settings derived from the environment."""
    global _pool, _trace_enabled
    _pool = _pool_from_env()
    _trace_enabled = _trace_from_env()


__all__ = [
    "TRACE_ENV_VAR",
    "POOL_ENV_VAR",
    "get_decimal_pool",
    "set_decimal_pool",
    "clear_decimal_pool",
    "is_trace_enabled",
    "enable_trace",
    "disable_trace",
    "reset",
]
