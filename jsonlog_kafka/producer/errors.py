"""Exceptions raised while configuring and driving the producer."""

from confluent_kafka import KafkaError


class KafkaSetupError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(KafkaSetupError):
    """A single configuration property was rejected."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        super().__init__(reason)
        self.key = key
        self.value = value
        self.reason = reason


class ConfigConsumedError(KafkaSetupError):
    """A configuration object was used after being handed to a constructor."""


class BootstrapError(KafkaSetupError):
    """The producer could not be brought to a usable state."""


class ConfigAllocationError(BootstrapError):
    """The client could not allocate a configuration object."""


class ProducerCreateError(BootstrapError):
    """The producer handle could not be constructed."""


class NoValidBrokersError(BootstrapError):
    """None of the configured brokers could be registered."""


class TopicCreateError(KafkaSetupError):
    """A topic handle could not be created; the topic is unusable."""


class ProduceError(KafkaSetupError):
    """A record could not be handed to the client's send queue."""

    def __init__(self, error: KafkaError) -> None:
        super().__init__(error.str())
        self.error = error
