"""
Tests for environment-driven defaults.
"""

import pytest
from pydantic import ValidationError

from resilient.config import Settings, get_settings
from resilient.resilience import CircuitBreakerConfig, RetryPolicy


class TestSettings:
    """Tests for Settings and the from_settings constructors."""

    def test_defaults_match_policy_defaults(self):
        settings = Settings()

        assert RetryPolicy.from_settings(settings) == RetryPolicy()
        assert CircuitBreakerConfig.from_settings(settings) == CircuitBreakerConfig()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "6")
        monkeypatch.setenv("RETRY_BASE_DELAY", "0.25")
        monkeypatch.setenv("CIRCUIT_FAILURE_THRESHOLD", "2")
        monkeypatch.setenv("CIRCUIT_MONITORING_PERIOD", "15")

        policy = RetryPolicy.from_settings()
        config = CircuitBreakerConfig.from_settings(get_settings())

        assert policy.max_attempts == 6
        assert policy.base_delay == 0.25
        assert config.failure_threshold == 2
        assert config.monitoring_period == 15.0

    def test_explicit_overrides_win(self):
        policy = RetryPolicy.from_settings(Settings(), max_attempts=1)
        assert policy.max_attempts == 1

    def test_invalid_env_rejected(self, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "0")

        with pytest.raises(ValidationError):
            Settings()
