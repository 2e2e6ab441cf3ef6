from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from neoapi.constants import (
    API_KEY_ENV,
    API_URL_ENV,
    DEFAULT_ADJUSTMENT_INTERVAL,
    DEFAULT_API_URL,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHECK_FREQUENCY,
    DEFAULT_FLUSH_INTERVAL,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_MAX_FLUSH_INTERVAL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MIN_BATCH_SIZE,
    DEFAULT_MIN_FLUSH_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
)
from neoapi.errors import ConfigurationError, MissingApiKeyError


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings of a tracking client.

    `batch_size` and `flush_interval` are the starting values only; once the
    client runs, the adaptive controller owns the live values. Both are
    clamped into their bounds here.
    """

    api_key: str
    api_url: str = DEFAULT_API_URL
    batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval: float = DEFAULT_FLUSH_INTERVAL
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    min_batch_size: int = DEFAULT_MIN_BATCH_SIZE
    max_flush_interval: float = DEFAULT_MAX_FLUSH_INTERVAL
    min_flush_interval: float = DEFAULT_MIN_FLUSH_INTERVAL
    max_retries: int = DEFAULT_MAX_RETRIES
    # Sampling stride: only every Nth event of a batch is delivered
    check_frequency: int = DEFAULT_CHECK_FREQUENCY
    adjustment_interval: float = DEFAULT_ADJUSTMENT_INTERVAL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise MissingApiKeyError()
        if not self.api_url:
            raise ConfigurationError("API URL must not be empty.")
        if self.min_batch_size < 1:
            raise ConfigurationError("min_batch_size must be at least 1.")
        if self.min_batch_size > self.max_batch_size:
            raise ConfigurationError(
                f"min_batch_size ({self.min_batch_size}) is greater than "
                f"max_batch_size ({self.max_batch_size})."
            )
        if self.min_flush_interval <= 0:
            raise ConfigurationError("min_flush_interval must be positive.")
        if self.min_flush_interval > self.max_flush_interval:
            raise ConfigurationError(
                f"min_flush_interval ({self.min_flush_interval}) is greater than "
                f"max_flush_interval ({self.max_flush_interval})."
            )
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1.")
        if self.check_frequency < 1:
            raise ConfigurationError("check_frequency must be at least 1.")
        if self.adjustment_interval <= 0:
            raise ConfigurationError("adjustment_interval must be positive.")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive.")

        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))
        object.__setattr__(
            self,
            "batch_size",
            min(max(self.batch_size, self.min_batch_size), self.max_batch_size),
        )
        object.__setattr__(
            self,
            "flush_interval",
            min(
                max(self.flush_interval, self.min_flush_interval),
                self.max_flush_interval,
            ),
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """
        Build a config, filling the API key and URL from the environment.

        Overrides set to None are ignored, so optional CLI flags can be
        passed straight through.
        """
        values = {key: value for key, value in overrides.items() if value is not None}
        values.setdefault("api_key", os.environ.get(API_KEY_ENV, ""))
        values.setdefault("api_url", os.environ.get(API_URL_ENV) or DEFAULT_API_URL)
        return cls(**values)
