"""Explicit configuration for the batch engine and store adapters.

Configuration is passed into runners and stores at construction. Nothing in
the library reads process-wide state except the ``from_env`` constructors,
which only read ``KVLAB_*`` variables when called.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, SecretStr

ENV_PREFIX = "KVLAB_"

# Store-defined per-call ceilings (DynamoDB BatchGetItem / BatchWriteItem)
DEFAULT_MAX_READ_BATCH = 100
DEFAULT_MAX_WRITE_BATCH = 25


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and exponential backoff bounds.

    Attributes:
        max_attempts: Maximum number of store calls per chunk
        base_delay: Delay in seconds before the first retry
        max_delay: Cap on any single delay in seconds
        retry_condition_failures: Treat failed conditional checks as
            retryable instead of surfacing them immediately
    """

    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 5.0
    retry_condition_failures: bool = False

    def __post_init__(self) -> None:
        """Validate retry policy configuration."""
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("RetryPolicy.base_delay must be >= 0")
        if self.max_delay < self.base_delay:
            raise ValueError("RetryPolicy.max_delay must be >= base_delay")

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given zero-based attempt.

        Args:
            attempt: Attempt that just finished (0 for the first call)

        Returns:
            ``base_delay * 2**attempt`` capped at ``max_delay``
        """
        if self.base_delay == 0:
            return 0.0
        # Exponent is clamped so large attempt counts never overflow a float.
        return min(self.base_delay * (2 ** min(attempt, 62)), self.max_delay)


def _coerce_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class BatchConfig:
    """Batch engine configuration.

    Attributes:
        max_read_batch: Maximum keys per batch read call
        max_write_batch: Maximum items per batch write call
        retry: Retry policy applied to every chunk
        deadline: Time budget in seconds for a whole run (None = unbounded)
        concurrent: Process chunks concurrently instead of sequentially
        max_concurrency: Maximum chunks in flight when concurrent
    """

    max_read_batch: int = DEFAULT_MAX_READ_BATCH
    max_write_batch: int = DEFAULT_MAX_WRITE_BATCH
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    deadline: float | None = None
    concurrent: bool = False
    max_concurrency: int = 4

    def __post_init__(self) -> None:
        """Validate batch configuration."""
        if self.max_read_batch < 1:
            raise ValueError("BatchConfig.max_read_batch must be >= 1")
        if self.max_write_batch < 1:
            raise ValueError("BatchConfig.max_write_batch must be >= 1")
        if self.deadline is not None and self.deadline < 0:
            raise ValueError("BatchConfig.deadline must be >= 0 or None")
        if self.max_concurrency < 1:
            raise ValueError("BatchConfig.max_concurrency must be >= 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BatchConfig:
        """Build a config from ``KVLAB_*`` variables, defaulting the rest.

        Recognized: MAX_READ_BATCH, MAX_WRITE_BATCH, MAX_ATTEMPTS, BASE_DELAY,
        MAX_DELAY, RETRY_CONDITION_FAILURES, DEADLINE, CONCURRENT,
        MAX_CONCURRENCY.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        base = defaults.retry

        def _int(name: str, default: int) -> int:
            value = _env(env, name)
            return int(value) if value is not None else default

        def _float(name: str, default: float) -> float:
            value = _env(env, name)
            return float(value) if value is not None else default

        retry_condition = _env(env, "RETRY_CONDITION_FAILURES")
        concurrent = _env(env, "CONCURRENT")
        deadline = _env(env, "DEADLINE")

        return cls(
            max_read_batch=_int("MAX_READ_BATCH", defaults.max_read_batch),
            max_write_batch=_int("MAX_WRITE_BATCH", defaults.max_write_batch),
            retry=RetryPolicy(
                max_attempts=_int("MAX_ATTEMPTS", base.max_attempts),
                base_delay=_float("BASE_DELAY", base.base_delay),
                max_delay=_float("MAX_DELAY", base.max_delay),
                retry_condition_failures=(
                    _coerce_bool(retry_condition)
                    if retry_condition is not None
                    else base.retry_condition_failures
                ),
            ),
            deadline=float(deadline) if deadline is not None else None,
            concurrent=_coerce_bool(concurrent) if concurrent is not None else False,
            max_concurrency=_int("MAX_CONCURRENCY", defaults.max_concurrency),
        )


class StoreSettings(BaseModel):
    """Connection settings for a store adapter."""

    table_name: str = Field(..., min_length=1)
    region: str = Field(default="us-east-1", min_length=1)
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: SecretStr | None = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreSettings:
        """Build settings from ``KVLAB_TABLE_NAME``, ``KVLAB_REGION``,
        ``KVLAB_ENDPOINT_URL``, ``KVLAB_ACCESS_KEY_ID`` and
        ``KVLAB_SECRET_ACCESS_KEY``.

        Raises:
            pydantic.ValidationError: If the table name is missing
        """
        env = os.environ if environ is None else environ
        values = {
            name.lower(): value
            for name in (
                "TABLE_NAME",
                "REGION",
                "ENDPOINT_URL",
                "ACCESS_KEY_ID",
                "SECRET_ACCESS_KEY",
            )
            if (value := _env(env, name)) is not None
        }
        return cls(**values)
