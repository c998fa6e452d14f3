"""Pytest configuration and fixtures."""

from collections.abc import Iterator

import pytest

from calcchain import settings
from calcchain.pool import DEFAULT_POOL, DefaultDecimalPool


@pytest.fixture(autouse=True)
def default_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test with environment-default settings and an empty default pool."""
    monkeypatch.delenv(settings.TRACE_ENV_VAR, raising=False)
    monkeypatch.delenv(settings.POOL_ENV_VAR, raising=False)
    settings.reset()
    DEFAULT_POOL.clear()
    yield
    settings.reset()
    DEFAULT_POOL.clear()


@pytest.fixture
def pool() -> DefaultDecimalPool:
    """A private DefaultDecimalPool with the default config."""
    return DefaultDecimalPool()


@pytest.fixture
def tracing() -> Iterator[None]:
    """Enable formula tracing for one test."""
    settings.enable_trace()
    yield
    settings.disable_trace()
