"""Tests for the confluent-kafka backed broker client.

No broker is needed: librdkafka creates producers without any bootstrap
server and queues records until one is known.
"""

import logging
import time

import pytest
from confluent_kafka import KafkaError
from structlog.testing import capture_logs

from jsonlog_kafka.common.logging import LIBRDKAFKA_LOGGER
from jsonlog_kafka.producer.client import (
    UNASSIGNED_PARTITION,
    ClientConfig,
    ConfluentBrokerClient,
    parse_brokers,
)
from jsonlog_kafka.producer.errors import (
    ConfigConsumedError,
    ConfigError,
    ProduceError,
    TopicCreateError,
)


@pytest.fixture
def client() -> ConfluentBrokerClient:
    return ConfluentBrokerClient()


@pytest.fixture
def producer(client):
    config = client.new_client_config()
    config.set("client.id", "jsonlog-test")
    config.set("queue.buffering.max.messages", 1)
    handle = client.new_producer(config)
    yield handle
    handle.close()


class TestParseBrokers:
    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("localhost:9092", ["localhost:9092"]),
            ("localhost", ["localhost"]),
            ("SSL://kafka-1:9093", ["SSL://kafka-1:9093"]),
            ("[::1]:9092", ["[::1]:9092"]),
            ("a:9092, b:9092", ["a:9092", "b:9092"]),
            ("a:9092,,bad:port", ["a:9092"]),
            ("ftp://kafka:21", []),
            ("kafka:70000", []),
            ("", []),
        ],
    )
    def test_parse(self, address, expected) -> None:
        assert parse_brokers(address) == expected


class TestConfigObjects:
    def test_set_rejects_bad_value(self) -> None:
        config = ClientConfig()

        with pytest.raises(ConfigError):
            config.set("log_level", 12)

        assert config.as_dict() == {}

    def test_consume_is_single_use(self) -> None:
        config = ClientConfig()
        config.set("client.id", "jsonlog")

        assert config.consume() == {"client.id": "jsonlog"}
        with pytest.raises(ConfigConsumedError):
            config.consume()


class TestConfluentProducerHandle:
    def test_new_producer_consumes_config(self, client) -> None:
        config = client.new_client_config()
        handle = client.new_producer(config)

        assert config.consumed
        handle.close()

    def test_add_brokers_counts_parsed_entries(self, producer) -> None:
        assert producer.add_brokers("localhost:9092") == 1
        assert producer.add_brokers("bad:port") == 0

    def test_set_log_level_maps_syslog_levels(self, producer) -> None:
        producer.set_log_level(7)
        assert logging.getLogger(LIBRDKAFKA_LOGGER).level == logging.DEBUG

        producer.set_log_level(3)
        assert logging.getLogger(LIBRDKAFKA_LOGGER).level == logging.ERROR

    def test_queue_full_raises_produce_error(self, client, producer) -> None:
        topic = client.new_topic(producer, "access-log", None)

        producer.produce(topic.name, UNASSIGNED_PARTITION, b"first", None)
        with pytest.raises(ProduceError) as exc_info:
            producer.produce(topic.name, UNASSIGNED_PARTITION, b"second", b"key")

        assert exc_info.value.error.code() == KafkaError._QUEUE_FULL
        assert producer.queue_length() >= 1

    def test_topic_config_is_consumed(self, client, producer) -> None:
        topic_config = client.new_topic_config()
        topic_config.set("request.required.acks", "0")

        topic = client.new_topic(producer, "access-log", topic_config)

        assert topic.name == "access-log"
        assert topic.producer is producer
        assert topic_config.consumed

    def test_invalid_topic_name(self, client, producer) -> None:
        with pytest.raises(TopicCreateError):
            client.new_topic(producer, "", None)

    def test_produce_after_close(self, client) -> None:
        handle = client.new_producer(client.new_client_config())
        handle.close()

        with pytest.raises(ProduceError) as exc_info:
            handle.produce("access-log", UNASSIGNED_PARTITION, b"late", None)

        assert exc_info.value.error.code() == KafkaError._DESTROY
        assert handle.queue_length() == 0
        assert handle.flush(0) == 0

    def test_rebuild_does_not_wait_for_queued_records(self, client, producer) -> None:
        producer.produce("access-log", UNASSIGNED_PARTITION, b"queued", None)
        topic_config = client.new_topic_config()
        topic_config.set("request.required.acks", "0")

        started = time.monotonic()
        with capture_logs() as logs:
            client.new_topic(producer, "access-log", topic_config)
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        dropped = next(e for e in logs if e["event"] == "kafka_rebuild_dropped")
        assert dropped["remaining_messages"] >= 1
        # The rebuilt producer starts with an empty queue
        producer.produce("access-log", UNASSIGNED_PARTITION, b"after", None)
