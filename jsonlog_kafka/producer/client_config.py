"""
Client-level configuration.

Maps Settings onto a ClientConfig, falling back to ProducerDefaults for
every unset field. Each property is applied on its own: a rejected one
is logged and counted, and the remaining ones are still applied.
"""

from jsonlog_kafka.common.config import DEFAULTS, ProducerDefaults, Settings
from jsonlog_kafka.common.logging import get_logger
from jsonlog_kafka.common.metrics import CONFIG_REJECTED
from jsonlog_kafka.producer.client import UNASSIGNED_PARTITION, ClientConfig
from jsonlog_kafka.producer.errors import ConfigError

logger = get_logger(__name__)

CLIENT_ID_KEY = "client.id"
COMPRESSION_CODEC_KEY = "compression.codec"
LOG_LEVEL_KEY = "log_level"
MAX_RETRIES_KEY = "message.send.max.retries"
BUFFER_MAX_MSGS_KEY = "queue.buffering.max.messages"
RETRY_BACKOFF_MS_KEY = "retry.backoff.ms"
DEBUG_KEY = "debug"


def _or_default(value, default):
    return default if value is None else value


def resolve_partition(settings: Settings) -> int:
    """Explicit partition, or UNASSIGNED_PARTITION to let the client pick."""
    if settings.kafka_partition is None:
        return UNASSIGNED_PARTITION
    return settings.kafka_partition


def resolve_log_level(
    settings: Settings,
    defaults: ProducerDefaults = DEFAULTS,
) -> int:
    return _or_default(settings.kafka_log_level, defaults.log_level)


def set_property(config: ClientConfig, key: str, value) -> bool:
    """
    Apply one property, logging a warning if it is rejected.

    Returns:
        True if the client accepted the property.
    """
    try:
        config.set(key, value)
    except ConfigError as e:
        CONFIG_REJECTED.labels(key=key).inc()
        logger.warning(
            "kafka_conf_set_failed",
            key=key,
            value=e.value,
            error=e.reason,
        )
        return False
    return True


class ClientConfigBuilder:
    """
    Applies producer settings to a ClientConfig.

    Usage:
        builder = ClientConfigBuilder(settings)
        rejected = builder.apply(broker_client.new_client_config())
    """

    def __init__(
        self,
        settings: Settings,
        defaults: ProducerDefaults = DEFAULTS,
        debug: bool | None = None,
    ):
        self.settings = settings
        self.defaults = defaults
        self.debug = settings.kafka_debug if debug is None else debug

    def properties(self) -> list[tuple[str, str | int]]:
        """Resolved (key, value) pairs, in the order they are applied."""
        s, d = self.settings, self.defaults
        pairs: list[tuple[str, str | int]] = [
            (COMPRESSION_CODEC_KEY, _or_default(s.kafka_compression, d.compression)),
            (BUFFER_MAX_MSGS_KEY, _or_default(s.kafka_buffer_max_messages, d.buffer_max_messages)),
            (MAX_RETRIES_KEY, _or_default(s.kafka_max_retries, d.max_retries)),
            (RETRY_BACKOFF_MS_KEY, _or_default(s.kafka_backoff_ms, d.backoff_ms)),
            (CLIENT_ID_KEY, _or_default(s.kafka_client_id, d.client_id)),
            (LOG_LEVEL_KEY, resolve_log_level(s, d)),
        ]
        if self.debug:
            pairs.append((DEBUG_KEY, "all"))
        pairs.extend(s.kafka_properties.items())
        return pairs

    def apply(self, config: ClientConfig) -> list[str]:
        """
        Set every resolved property on the configuration.

        Returns:
            Keys the client rejected. Rejections are not fatal.
        """
        rejected = []
        for key, value in self.properties():
            if not set_property(config, key, value):
                rejected.append(key)
        return rejected
