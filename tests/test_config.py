"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from taskrouter.config import Environment, Settings, get_settings


class TestSettings:
    """Test Settings model and validation."""

    def test_default_settings_load_correctly(self):
        settings = Settings()

        assert settings.environment == Environment.DEV
        assert settings.debug is True  # Auto-set from DEV environment
        assert settings.execution_history_capacity == 1000
        assert settings.evaluation_history_capacity is None
        assert settings.inference_backend == "simulated"
        assert settings.domain_affinity == {"accounting": "llama3"}

    def test_is_dev_property_returns_true_for_test(self):
        settings = Settings(environment=Environment.TEST)
        assert settings.is_dev is True
        assert settings.is_prod is False

    def test_is_prod_property(self):
        settings = Settings(environment=Environment.PROD)
        assert settings.is_prod is True
        assert settings.is_dev is False

    def test_debug_not_forced_outside_dev(self):
        settings = Settings(environment=Environment.PROD, debug=False)
        assert settings.debug is False

    def test_log_level_is_normalised(self):
        settings = Settings(log_level="debug")
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            Settings(log_level="chatty")

    def test_execution_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(execution_history_capacity=0)

    def test_history_bounds_default_to_unbounded(self):
        settings = Settings()
        assert settings.completed_task_capacity is None
        assert settings.task_record_capacity is None

    def test_history_bounds_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(completed_task_capacity=0)
        with pytest.raises(ValidationError):
            Settings(task_record_capacity=0)

    def test_health_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(health_poll_interval_seconds=0)

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(inference_backend="carrier-pigeon")

    def test_production_litellm_requires_real_key(self):
        with pytest.raises((ValidationError, RuntimeError), match="PRODUCTION STARTUP BLOCKED"):
            Settings(environment=Environment.PROD, inference_backend="litellm")

    def test_production_litellm_with_real_key(self):
        settings = Settings(
            environment=Environment.PROD,
            inference_backend="litellm",
            litellm_api_key="sk-production-key",
        )
        assert settings.litellm_api_key.get_secret_value() == "sk-production-key"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("TASKROUTER_EXECUTION_HISTORY_CAPACITY", "42")
        monkeypatch.setenv("TASKROUTER_AGENT_BASE_DOMAIN_TAGS", '["math"]')

        settings = Settings()

        assert settings.execution_history_capacity == 42
        assert settings.agent_base_domain_tags == ["math"]


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
