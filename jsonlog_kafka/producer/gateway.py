"""
Per-record produce path.

Hands a record to the client's send queue and returns. Nothing here
waits on the network or raises to the caller: a record that cannot be
enqueued is logged, counted and dropped. Retries are the client's job,
driven by message.send.max.retries / retry.backoff.ms.
"""

from jsonlog_kafka.common.logging import get_logger
from jsonlog_kafka.common.metrics import PRODUCE_ERRORS, RECORDS_ENQUEUED
from jsonlog_kafka.common.strings import BytesLike, to_bytes
from jsonlog_kafka.producer.client import TopicHandle
from jsonlog_kafka.producer.errors import ProduceError

logger = get_logger(__name__)


class ProduceGateway:
    """
    Fire-and-forget record submission.

    Args:
        diagnostics: Also log payload, error code and queue depth on failure.
    """

    def __init__(self, diagnostics: bool = False):
        self.diagnostics = diagnostics

    def produce(
        self,
        topic: TopicHandle | None,
        partition: int,
        payload: BytesLike,
        key: BytesLike | None = None,
    ) -> None:
        if topic is None:
            logger.warning("kafka_topic_unusable", partition=partition)
            return

        value = to_bytes(payload)
        # Empty keys are not sent
        record_key = to_bytes(key) or None

        try:
            topic.producer.produce(topic.name, partition, value, record_key)
        except ProduceError as e:
            PRODUCE_ERRORS.labels(topic=topic.name, error=e.error.name()).inc()
            logger.error(
                "kafka_produce_failed",
                topic=topic.name,
                partition=partition,
                error=e.error.str(),
                code=e.error.code(),
            )
            if self.diagnostics:
                logger.debug(
                    "kafka_produce_diagnostics",
                    payload=value,
                    code=e.error.code(),
                    queue_length=topic.producer.queue_length(),
                )
            return

        RECORDS_ENQUEUED.labels(topic=topic.name).inc()
