"""
Producer bootstrap.

Brings a producer from settings to a usable state:

    UNINITIALIZED -> CLIENT_CONFIGURED -> PRODUCER_LIVE
        -> BROKERS_REGISTERED -> READY

A fatal failure at any step releases whatever was created, returns to
UNINITIALIZED and raises a BootstrapError subclass. Topic handles are
created afterwards, one per topic name, and a failed topic never takes
the producer down.
"""

from enum import Enum

from jsonlog_kafka.common.config import DEFAULTS, ProducerDefaults, Settings
from jsonlog_kafka.common.logging import get_logger
from jsonlog_kafka.common.metrics import BROKER_REGISTRATIONS
from jsonlog_kafka.producer.client import (
    BrokerClient,
    ProducerHandle,
    TopicConfig,
    TopicHandle,
)
from jsonlog_kafka.producer.client_config import (
    ClientConfigBuilder,
    resolve_log_level,
    resolve_partition,
)
from jsonlog_kafka.producer.errors import (
    BootstrapError,
    ConfigAllocationError,
    KafkaSetupError,
    NoValidBrokersError,
)
from jsonlog_kafka.producer.topic_config import TopicConfigBuilder

logger = get_logger(__name__)


class BootstrapState(Enum):
    UNINITIALIZED = "uninitialized"
    CLIENT_CONFIGURED = "client_configured"
    PRODUCER_LIVE = "producer_live"
    BROKERS_REGISTERED = "brokers_registered"
    READY = "ready"


class ProducerBootstrapper:
    """
    Builds the producer handle and its topics from settings.

    Usage:
        bootstrapper = ProducerBootstrapper(settings, ConfluentBrokerClient())
        bootstrapper.bootstrap()
        topic = bootstrapper.create_topic("access-log")
    """

    def __init__(
        self,
        settings: Settings,
        broker_client: BrokerClient,
        defaults: ProducerDefaults = DEFAULTS,
    ):
        self.settings = settings
        self.broker_client = broker_client
        self.defaults = defaults
        self.state = BootstrapState.UNINITIALIZED
        self.producer: ProducerHandle | None = None
        self.partition = resolve_partition(settings)
        self.valid_brokers = 0
        self.topic_builder = TopicConfigBuilder(disable_ack=settings.kafka_disable_ack)

    @property
    def ready(self) -> bool:
        return self.state is BootstrapState.READY

    def bootstrap(self) -> ProducerHandle:
        """
        Run the bootstrap sequence.

        Returns:
            The live producer handle.

        Raises:
            ConfigAllocationError: Client configuration could not be allocated.
            ProducerCreateError: The producer handle could not be constructed.
            NoValidBrokersError: No broker address could be registered.
        """
        if self.ready:
            return self.producer

        try:
            return self._bootstrap()
        except BootstrapError as e:
            logger.critical("kafka_bootstrap_failed", error=str(e))
            self._reset()
            raise

    def _bootstrap(self) -> ProducerHandle:
        try:
            config = self.broker_client.new_client_config()
        except KafkaSetupError as e:
            raise ConfigAllocationError(f"error allocating kafka conf: {e}") from e

        ClientConfigBuilder(self.settings, self.defaults).apply(config)
        self.state = BootstrapState.CLIENT_CONFIGURED

        # Consumes config, whether or not it succeeds
        self.producer = self.broker_client.new_producer(config)
        self.state = BootstrapState.PRODUCER_LIVE

        self.producer.set_log_level(resolve_log_level(self.settings, self.defaults))

        self.valid_brokers = self._add_brokers(self.producer, self.settings.brokers_list)
        if not self.valid_brokers:
            logger.critical(
                "kafka_no_valid_brokers",
                brokers=self.settings.brokers_list,
            )
            raise NoValidBrokersError("no valid brokers: failed to configure at least a kafka broker")
        self.state = BootstrapState.BROKERS_REGISTERED

        self.state = BootstrapState.READY
        logger.info(
            "kafka_producer_ready",
            valid_brokers=self.valid_brokers,
            partition=self.partition,
        )
        return self.producer

    def _add_brokers(self, producer: ProducerHandle, brokers: list[str]) -> int:
        """Register each broker; returns how many were accepted."""
        registered = 0
        for broker in brokers:
            try:
                added = producer.add_brokers(broker)
            except KafkaSetupError as e:
                logger.warning("kafka_broker_failed", broker=broker, error=str(e))
                BROKER_REGISTRATIONS.labels(outcome="failed").inc()
                continue

            if added:
                logger.info("kafka_broker_configured", broker=broker)
                BROKER_REGISTRATIONS.labels(outcome="configured").inc()
                registered += 1
            else:
                logger.warning("kafka_broker_failed", broker=broker)
                BROKER_REGISTRATIONS.labels(outcome="failed").inc()
        return registered

    def _new_topic_config(self) -> TopicConfig | None:
        try:
            return self.broker_client.new_topic_config()
        except KafkaSetupError as e:
            logger.critical("kafka_topic_conf_alloc_failed", error=str(e))
            return None

    def create_topic(self, name: str) -> TopicHandle | None:
        """
        Create a topic handle on the live producer.

        Returns:
            The handle, or None if the topic is currently unusable.
        """
        if self.producer is None or not self.ready:
            logger.critical("kafka_missing_producer", topic=name)
            return None

        topic_config = None
        if self.topic_builder.has_overrides:
            topic_config = self._new_topic_config()
            self.topic_builder.apply(topic_config)

        try:
            topic = self.broker_client.new_topic(self.producer, name, topic_config)
        except KafkaSetupError as e:
            logger.warning("kafka_topic_create_failed", topic=name, error=str(e))
            return None

        logger.info("kafka_topic_created", topic=name)
        return topic

    def _reset(self) -> None:
        if self.producer is not None:
            self.producer.close()
        self.producer = None
        self.valid_brokers = 0
        self.state = BootstrapState.UNINITIALIZED

    def close(self) -> None:
        """Release the producer handle."""
        if self.producer is not None:
            logger.info("kafka_producer_closed")
        self._reset()
