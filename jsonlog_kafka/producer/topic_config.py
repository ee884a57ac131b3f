"""Topic-level configuration."""

from jsonlog_kafka.common.logging import get_logger
from jsonlog_kafka.common.metrics import CONFIG_REJECTED
from jsonlog_kafka.producer.client import TopicConfig
from jsonlog_kafka.producer.errors import ConfigError

logger = get_logger(__name__)

REQUIRED_ACKS_KEY = "request.required.acks"


class TopicConfigBuilder:
    """Applies per-topic overrides; currently only fire-and-forget acks."""

    def __init__(self, disable_ack: bool = False):
        self.disable_ack = disable_ack

    @property
    def has_overrides(self) -> bool:
        return self.disable_ack

    def apply(self, topic_config: TopicConfig | None) -> None:
        # A missing topic config is a no-op, not an error.
        if topic_config is None:
            return

        if self.disable_ack:
            try:
                topic_config.set(REQUIRED_ACKS_KEY, "0")
            except ConfigError as e:
                CONFIG_REJECTED.labels(key=REQUIRED_ACKS_KEY).inc()
                logger.warning(
                    "kafka_topic_conf_set_failed",
                    key=REQUIRED_ACKS_KEY,
                    value=e.value,
                    error=e.reason,
                )
