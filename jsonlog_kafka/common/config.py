"""
Centralized configuration management using Pydantic Settings.

Loads the producer settings from environment variables / .env file.
Only types are checked here (a non-numeric KAFKA_LOG_LEVEL fails the
load). Ranges and enum values of librdkafka properties are checked when
each property is applied, so an out-of-range value is rejected for that
key alone. The partition is not a librdkafka property and must be >= 0.

Fields left as None are "unset" and resolve to ProducerDefaults.
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ProducerDefaults:
    """Values applied to the client configuration for unset settings."""

    client_id: str = "jsonlog"
    compression: str = "snappy"
    log_level: int = 6
    max_retries: int = 0
    buffer_max_messages: int = 100000
    backoff_ms: int = 10


DEFAULTS = ProducerDefaults()


class Settings(BaseSettings):
    """
    Producer settings - loads all config from .env
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Kafka client
    kafka_brokers: str = ""
    kafka_client_id: str | None = None
    kafka_compression: str | None = None
    kafka_log_level: int | None = None
    kafka_max_retries: int | None = None
    kafka_buffer_max_messages: int | None = None
    kafka_backoff_ms: int | None = None
    kafka_debug: bool = False

    # Extra librdkafka properties, applied after the ones above
    kafka_properties: dict[str, str] = Field(default_factory=dict)

    # Topic
    kafka_partition: int | None = Field(default=None, ge=0)
    kafka_disable_ack: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Monitoring
    prometheus_port: int = 8000

    @property
    def brokers_list(self) -> list[str]:
        """Parse comma-separated brokers into a list, keeping order."""
        return [b.strip() for b in self.kafka_brokers.split(",") if b.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to avoid reloading .env on every call.
    """
    return Settings()
