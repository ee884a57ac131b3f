"""Test fixtures for jsonlog-kafka."""

import pytest
from confluent_kafka import KafkaError

from jsonlog_kafka.common.config import Settings
from jsonlog_kafka.producer.client import ClientConfig, TopicConfig, TopicHandle
from jsonlog_kafka.producer.errors import (
    ConfigAllocationError,
    ProduceError,
    ProducerCreateError,
    TopicCreateError,
)


class FakeProducerHandle:
    """In-memory producer handle recording every call."""

    def __init__(self, client: "FakeBrokerClient", properties: dict[str, str]) -> None:
        self.client = client
        self.properties = properties
        self.log_level: int | None = None
        self.brokers: list[str] = []
        self.attempts: list[tuple[str, int, bytes, bytes | None]] = []
        self.records: list[tuple[str, int, bytes, bytes | None]] = []
        self.closed = False

    def set_log_level(self, level: int) -> None:
        self.log_level = level

    def add_brokers(self, address: str) -> int:
        if address in self.client.reject_brokers:
            return 0
        self.brokers.append(address)
        return 1

    def produce(self, topic, partition, value, key) -> None:
        self.attempts.append((topic, partition, value, key))
        code = self.client.fail_keys.get(key, self.client.fail_all)
        if code is not None:
            raise ProduceError(KafkaError(code))
        self.records.append((topic, partition, value, key))

    def queue_length(self) -> int:
        return len(self.records)

    def poll(self, timeout: float = 0) -> int:
        return 0

    def flush(self, timeout: float = -1) -> int:
        self.records.clear()
        return 0

    def close(self) -> None:
        self.closed = True


class FakeBrokerClient:
    """BrokerClient with switchable failures."""

    def __init__(self) -> None:
        self.fail_config_alloc = False
        self.fail_topic_config_alloc = False
        self.fail_producer = False
        self.fail_topics: set[str] = set()
        self.reject_brokers: set[str] = set()
        self.fail_keys: dict[bytes | None, int] = {}
        self.fail_all: int | None = None

        self.calls: list[str] = []
        self.configs: list[ClientConfig] = []
        self.producers: list[FakeProducerHandle] = []
        self.topic_properties: dict[str, dict[str, str]] = {}

    def new_client_config(self) -> ClientConfig:
        self.calls.append("new_client_config")
        if self.fail_config_alloc:
            raise ConfigAllocationError("out of memory")
        config = ClientConfig()
        self.configs.append(config)
        return config

    def new_topic_config(self) -> TopicConfig:
        self.calls.append("new_topic_config")
        if self.fail_topic_config_alloc:
            raise ConfigAllocationError("out of memory")
        return TopicConfig()

    def new_producer(self, config: ClientConfig) -> FakeProducerHandle:
        self.calls.append("new_producer")
        properties = config.consume()
        if self.fail_producer:
            raise ProducerCreateError("error allocating kafka handler")
        producer = FakeProducerHandle(self, properties)
        self.producers.append(producer)
        return producer

    def new_topic(self, producer, name, topic_config) -> TopicHandle:
        self.calls.append("new_topic")
        properties = topic_config.consume() if topic_config is not None else {}
        if name in self.fail_topics:
            raise TopicCreateError(f'failed to create topic "{name}"')
        self.topic_properties[name] = properties
        return TopicHandle(name=name, producer=producer)


def make_settings(**kwargs) -> Settings:
    """Settings that ignore any .env file."""
    return Settings(_env_file=None, **kwargs)


@pytest.fixture
def broker_client() -> FakeBrokerClient:
    return FakeBrokerClient()


@pytest.fixture
def settings() -> Settings:
    return make_settings(kafka_brokers="localhost:9092")
