"""Unit tests for engine and store configuration."""

import pytest
from pydantic import ValidationError

from kvlab.batch.config import BatchConfig, RetryPolicy, StoreSettings


class TestRetryPolicy:
    """Test RetryPolicy validation and backoff schedule."""

    def test_defaults(self):
        """Test default attempt budget and delays."""
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.base_delay == 0.1
        assert policy.max_delay == 5.0
        assert policy.retry_condition_failures is False

    def test_delay_doubles_per_attempt(self):
        """Test exponential backoff from base_delay."""
        policy = RetryPolicy(base_delay=0.1, max_delay=10.0)
        assert [policy.delay_for(a) for a in range(4)] == pytest.approx([0.1, 0.2, 0.4, 0.8])

    def test_delay_capped_at_max_delay(self):
        """Test no delay exceeds max_delay, even for huge attempt numbers."""
        policy = RetryPolicy(base_delay=1.0, max_delay=3.0)
        assert policy.delay_for(5) == 3.0
        assert policy.delay_for(10_000) == 3.0

    def test_zero_base_delay(self):
        """Test zero base delay disables sleeping."""
        policy = RetryPolicy(base_delay=0.0, max_delay=0.0)
        assert policy.delay_for(3) == 0.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay": -0.1},
            {"base_delay": 2.0, "max_delay": 1.0},
        ],
    )
    def test_invalid_policy_rejected(self, kwargs):
        """Test invalid policies raise ValueError."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestBatchConfig:
    """Test BatchConfig defaults, validation and environment loading."""

    def test_defaults(self):
        """Test store-defined batch ceilings are the defaults."""
        config = BatchConfig()
        assert config.max_read_batch == 100
        assert config.max_write_batch == 25
        assert config.deadline is None
        assert config.concurrent is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_read_batch": 0},
            {"max_write_batch": 0},
            {"deadline": -1.0},
            {"max_concurrency": 0},
        ],
    )
    def test_invalid_config_rejected(self, kwargs):
        """Test invalid configs raise ValueError."""
        with pytest.raises(ValueError):
            BatchConfig(**kwargs)

    def test_from_env(self):
        """Test values are read from KVLAB_* variables."""
        config = BatchConfig.from_env(
            {
                "KVLAB_MAX_WRITE_BATCH": "10",
                "KVLAB_MAX_ATTEMPTS": "5",
                "KVLAB_BASE_DELAY": "0.5",
                "KVLAB_RETRY_CONDITION_FAILURES": "true",
                "KVLAB_DEADLINE": "30",
                "KVLAB_CONCURRENT": "yes",
                "KVLAB_MAX_CONCURRENCY": "8",
                "UNRELATED": "ignored",
            }
        )
        assert config.max_write_batch == 10
        assert config.max_read_batch == 100
        assert config.retry.max_attempts == 5
        assert config.retry.base_delay == 0.5
        assert config.retry.retry_condition_failures is True
        assert config.deadline == 30.0
        assert config.concurrent is True
        assert config.max_concurrency == 8

    def test_from_env_empty(self):
        """Test empty environment yields defaults."""
        assert BatchConfig.from_env({}) == BatchConfig()

    def test_from_env_blank_values_ignored(self):
        """Test blank variables fall back to defaults."""
        config = BatchConfig.from_env({"KVLAB_MAX_ATTEMPTS": "  "})
        assert config.retry.max_attempts == 3


class TestStoreSettings:
    """Test StoreSettings validation."""

    def test_from_env(self):
        """Test settings are read from KVLAB_* variables."""
        settings = StoreSettings.from_env(
            {
                "KVLAB_TABLE_NAME": "library",
                "KVLAB_ENDPOINT_URL": "http://localhost:8000",
                "KVLAB_SECRET_ACCESS_KEY": "s3cret",
            }
        )
        assert settings.table_name == "library"
        assert settings.region == "us-east-1"
        assert settings.endpoint_url == "http://localhost:8000"
        assert settings.secret_access_key is not None
        assert settings.secret_access_key.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(settings)

    def test_missing_table_name(self):
        """Test table name is required."""
        with pytest.raises(ValidationError):
            StoreSettings.from_env({})

    def test_frozen(self):
        """Test settings are immutable."""
        settings = StoreSettings(table_name="library")
        with pytest.raises(ValidationError):
            settings.table_name = "other"
