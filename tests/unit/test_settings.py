"""Tests for process-wide settings."""

import importlib
import sys
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

import calcchain
from calcchain import settings, start, start_with
from calcchain.pool import DEFAULT_POOL, DecimalPool, NoOpDecimalPool


class RecordingPool(DecimalPool):
    """Pool that remembers every value it was asked for."""

    def __init__(self):
        self.seen = []

    def get(self, value):
        self.seen.append(value)
        return value


class TestDecimalPoolSetting:
    """Tests for installing pools."""

    def test_default_pool_installed(self):
        """The default pool is installed out of the box."""
        assert settings.get_decimal_pool() is DEFAULT_POOL

    def test_set_none_installs_noop(self):
        """set_decimal_pool(None) installs a NoOpDecimalPool."""
        settings.set_decimal_pool(None)
        assert isinstance(settings.get_decimal_pool(), NoOpDecimalPool)

    def test_set_invalid_type(self):
        """Only DecimalPool instances can be installed."""
        with pytest.raises(TypeError):
            settings.set_decimal_pool(object())

    def test_installed_pool_sees_results(self):
        """Both engines pass results through the installed pool."""
        pool = RecordingPool()
        settings.set_decimal_pool(pool)

        start(2).add(3).result()
        start_with(4).multiply(2).result()

        assert pool.seen == [Decimal(5), Decimal(8)]

    def test_noop_keeps_representation(self):
        """Without pooling, results keep their trailing zeros."""
        settings.set_decimal_pool(NoOpDecimalPool())
        assert str(start(Decimal("1.50")).result()) == "1.50"

    def test_default_pool_normalizes(self):
        """With the default pool, trailing zeros are stripped."""
        assert str(start(Decimal("1.50")).result()) == "1.5"

    def test_clear_decimal_pool(self):
        """clear_decimal_pool() empties the installed pool."""
        start(7).result()
        assert len(DEFAULT_POOL) == 1
        settings.clear_decimal_pool()
        assert len(DEFAULT_POOL) == 0

    def test_install_logged(self):
        """Installing a pool is logged."""
        with capture_logs() as logs:
            settings.set_decimal_pool(NoOpDecimalPool())
        assert logs == [
            {"event": "decimal_pool_installed", "pool": "NoOpDecimalPool", "log_level": "info"}
        ]


class TestTraceSetting:
    """Tests for the trace flag."""

    def test_disabled_by_default(self):
        """Tracing is off unless enabled."""
        assert settings.is_trace_enabled() is False

    def test_toggle(self):
        """enable_trace() and disable_trace() flip the flag and log it."""
        with capture_logs() as logs:
            settings.enable_trace()
            assert settings.is_trace_enabled() is True
            settings.disable_trace()
            assert settings.is_trace_enabled() is False
        assert [log["enabled"] for log in logs if log["event"] == "trace_toggled"] == [True, False]


class TestEnvironment:
    """Tests for settings read from environment variables."""

    @pytest.mark.parametrize("value", ["true", "1", "YES"])
    def test_trace_from_env(self, monkeypatch, value):
        """CALCCHAIN_TRACE enables tracing."""
        monkeypatch.setenv(settings.TRACE_ENV_VAR, value)
        settings.reset()
        assert settings.is_trace_enabled() is True

    def test_trace_env_other_value(self, monkeypatch):
        """Unrecognized CALCCHAIN_TRACE values leave tracing off."""
        monkeypatch.setenv(settings.TRACE_ENV_VAR, "off")
        settings.reset()
        assert settings.is_trace_enabled() is False

    def test_pool_none_from_env(self, monkeypatch):
        """CALCCHAIN_POOL=none installs a NoOpDecimalPool."""
        monkeypatch.setenv(settings.POOL_ENV_VAR, "None")
        settings.reset()
        assert isinstance(settings.get_decimal_pool(), NoOpDecimalPool)

    def test_pool_default_from_env(self, monkeypatch):
        """CALCCHAIN_POOL=default installs the default pool."""
        settings.set_decimal_pool(None)
        monkeypatch.setenv(settings.POOL_ENV_VAR, "default")
        settings.reset()
        assert settings.get_decimal_pool() is DEFAULT_POOL

    def test_invalid_pool_env(self, monkeypatch):
        """Unknown CALCCHAIN_POOL values log a warning and keep the default pool."""
        settings.set_decimal_pool(None)
        monkeypatch.setenv(settings.POOL_ENV_VAR, "lru")
        with capture_logs() as logs:
            settings.reset()
        assert settings.get_decimal_pool() is DEFAULT_POOL
        assert logs == [
            {
                "event": "invalid_pool_setting",
                "variable": "CALCCHAIN_POOL",
                "value": "lru",
                "expected": ["default", "none"],
                "fallback": "default",
                "log_level": "warning",
            }
        ]

    def test_invalid_pool_env_at_import(self, monkeypatch):
        """An invalid CALCCHAIN_POOL does not break importing the package."""
        monkeypatch.setenv(settings.POOL_ENV_VAR, "lru")
        monkeypatch.setattr(calcchain, "settings", settings)
        monkeypatch.delitem(sys.modules, "calcchain.settings")
        reloaded = importlib.import_module("calcchain.settings")
        assert reloaded.get_decimal_pool() is DEFAULT_POOL
