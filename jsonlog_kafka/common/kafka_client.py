"""
Kafka log producer client.

Provides a reusable, configured producer for rendered log records with:
- Settings-driven bootstrap (defaults for unset fields)
- One topic handle per topic name
- Fire-and-forget sends
- Graceful shutdown
"""

from jsonlog_kafka.common.config import DEFAULTS, ProducerDefaults, Settings, get_settings
from jsonlog_kafka.common.logging import get_logger, setup_logging
from jsonlog_kafka.common.metrics import start_metrics_server
from jsonlog_kafka.common.strings import BytesLike
from jsonlog_kafka.producer.bootstrap import ProducerBootstrapper
from jsonlog_kafka.producer.client import BrokerClient, ConfluentBrokerClient, TopicHandle
from jsonlog_kafka.producer.gateway import ProduceGateway

logger = get_logger(__name__)


class KafkaLogProducer:
    """
    Producer for log records.

    Usage:
        client = KafkaLogProducer()
        client.send("access-log", b'{"status": 200}', key=request_id)
        client.close()  # On shutdown
    """

    def __init__(
        self,
        settings: Settings | None = None,
        broker_client: BrokerClient | None = None,
        defaults: ProducerDefaults = DEFAULTS,
    ):
        """
        Bootstrap the producer.

        Args:
            settings: Producer settings. Loaded from the environment if omitted.
            broker_client: Client library boundary. confluent-kafka if omitted.
            defaults: Values for unset settings.

        Raises:
            BootstrapError: If the producer cannot be made usable.
        """
        self.settings = settings or get_settings()
        self._bootstrapper = ProducerBootstrapper(
            self.settings,
            broker_client or ConfluentBrokerClient(),
            defaults,
        )
        self._gateway = ProduceGateway(diagnostics=self.settings.kafka_debug)
        self._topics: dict[str, TopicHandle | None] = {}

        self._bootstrapper.bootstrap()

        logger.info(
            "kafka_producer_initialized",
            brokers=self.settings.brokers_list,
        )

    @property
    def partition(self) -> int:
        return self._bootstrapper.partition

    def topic(self, name: str) -> TopicHandle | None:
        """Get the handle for a topic, creating it on first use."""
        if name not in self._topics:
            self._topics[name] = self._bootstrapper.create_topic(name)
        return self._topics[name]

    def refresh_topics(self) -> None:
        """Forget topics whose creation failed so the next send retries them."""
        for name in [n for n, t in self._topics.items() if t is None]:
            del self._topics[name]

    def send(
        self,
        topic: str,
        payload: BytesLike,
        key: BytesLike | None = None,
        partition: int | None = None,
    ) -> None:
        """
        Send a record to Kafka without waiting for delivery.

        Args:
            topic: Target topic name.
            payload: Rendered record.
            key: Optional record key. Empty keys are not sent.
            partition: Overrides the configured partition.
        """
        partition = self.partition if partition is None else partition
        handle = self.topic(topic)
        if handle is None:
            logger.warning("kafka_topic_unusable", topic=topic, partition=partition)
            return

        self._gateway.produce(handle, partition, payload, key)

    def flush(self, timeout: float = 10.0) -> int:
        """
        Wait for all records to be delivered.

        Args:
            timeout: Max seconds to wait.

        Returns:
            Number of records still in queue (0 = all delivered).
        """
        if self._bootstrapper.producer is None:
            return 0
        remaining = self._bootstrapper.producer.flush(timeout)
        if remaining > 0:
            logger.warning(
                "kafka_flush_incomplete",
                remaining_messages=remaining,
            )
        else:
            logger.info("kafka_flush_complete")
        return remaining

    def close(self, timeout: float = 10.0) -> None:
        """Flush pending records and release the producer."""
        self.flush(timeout)
        self._topics.clear()
        self._bootstrapper.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - flush and release on close."""
        self.close()


def create_producer(
    settings: Settings | None = None,
    broker_client: BrokerClient | None = None,
) -> KafkaLogProducer:
    """
    Configure logging and metrics, then bootstrap a producer.

    A prometheus_port of 0 disables the metrics server.
    """
    settings = settings or get_settings()
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    if settings.prometheus_port:
        start_metrics_server(settings.prometheus_port)
    return KafkaLogProducer(settings, broker_client)
