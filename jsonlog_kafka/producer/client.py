"""
Broker client boundary.

The bootstrap and produce code only talk to the Protocols below.
ConfluentBrokerClient implements them on top of confluent_kafka.Producer
(librdkafka), which owns the wire protocol, partitioning, batching and
retries.

Configuration objects are single use: handing one to new_producer() or
new_topic() consumes it, and any later set() or consume() raises
ConfigConsumedError.
"""

import re
from dataclasses import dataclass
from typing import Protocol

from confluent_kafka import KafkaError, KafkaException, Message, Producer

from jsonlog_kafka.common.logging import get_logger, librdkafka_logger, syslog_to_logging
from jsonlog_kafka.common.metrics import DELIVERY_FAILURES
from jsonlog_kafka.common.strings import to_config_value
from jsonlog_kafka.producer.errors import (
    ConfigConsumedError,
    ProduceError,
    ProducerCreateError,
    TopicCreateError,
)
from jsonlog_kafka.producer.properties import GLOBAL, TOPIC, validate

logger = get_logger(__name__)

# librdkafka's RD_KAFKA_PARTITION_UA
UNASSIGNED_PARTITION = -1


_BROKER_RE = re.compile(
    r"^(?:(?P<proto>[A-Za-z_]+)://)?"
    r"(?P<host>\[[0-9A-Fa-f:.]+\]|[^:/\s\[\]]+)"
    r"(?::(?P<port>\d+))?$"
)
_BROKER_PROTOCOLS = {"plaintext", "ssl", "sasl_plaintext", "sasl_ssl"}

_TOPIC_RE = re.compile(r"^[A-Za-z0-9._-]{1,249}$")


class _Config:
    """String key/value configuration, validated one property at a time."""

    scope = GLOBAL

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._consumed = False

    def _check(self) -> None:
        if self._consumed:
            raise ConfigConsumedError(
                f"{type(self).__name__} was already handed to the client"
            )

    def set(self, key: str, value: str | int | bool) -> None:
        """
        Set one property.

        Raises:
            ConfigError: If the client rejects the key or value.
            ConfigConsumedError: If the object was already consumed.
        """
        self._check()
        name, normalized = validate(key, to_config_value(value), self.scope)
        self._values[name] = normalized

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> dict[str, str]:
        """Hand the properties over; the object cannot be used afterwards."""
        self._check()
        self._consumed = True
        return dict(self._values)


class ClientConfig(_Config):
    scope = GLOBAL


class TopicConfig(_Config):
    scope = TOPIC


class ProducerHandle(Protocol):
    def set_log_level(self, level: int) -> None: ...

    def add_brokers(self, address: str) -> int: ...

    def produce(
        self,
        topic: str,
        partition: int,
        value: bytes,
        key: bytes | None,
    ) -> None: ...

    def queue_length(self) -> int: ...

    def poll(self, timeout: float = 0) -> int: ...

    def flush(self, timeout: float = -1) -> int: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class TopicHandle:
    """A topic name bound to the producer that serves it."""

    name: str
    producer: ProducerHandle


class BrokerClient(Protocol):
    def new_client_config(self) -> ClientConfig: ...

    def new_topic_config(self) -> TopicConfig: ...

    def new_producer(self, config: ClientConfig) -> ProducerHandle: ...

    def new_topic(
        self,
        producer: ProducerHandle,
        name: str,
        topic_config: TopicConfig | None,
    ) -> TopicHandle: ...


def parse_brokers(address: str) -> list[str]:
    """
    Parse a librdkafka broker list: [proto://]host[:port][,...].

    Returns:
        The well-formed entries, in order. Malformed ones are skipped.
    """
    parsed = []
    for item in address.split(","):
        item = item.strip()
        if not item:
            continue
        match = _BROKER_RE.match(item)
        if match is None:
            continue
        proto = match["proto"]
        if proto is not None and proto.lower() not in _BROKER_PROTOCOLS:
            continue
        port = match["port"]
        if port is not None and not 0 < int(port) <= 65535:
            continue
        parsed.append(item)
    return parsed


class ConfluentProducerHandle:
    """
    ProducerHandle backed by confluent_kafka.Producer.

    The Python binding takes brokers and topic properties at construction
    time only, so registering a broker or binding a topic with new
    properties marks the producer stale and it is rebuilt on next use.
    """

    def __init__(self, properties: dict[str, str]) -> None:
        self._properties = properties
        self._brokers: list[str] = []
        self._topic_properties: dict[str, str] = {}
        self._rdkafka_logger = librdkafka_logger()
        self._stale = False
        self._producer: Producer | None = self._create()

    def _effective_config(self) -> dict:
        config: dict = dict(self._properties)
        config.update(self._topic_properties)
        if self._brokers:
            config["bootstrap.servers"] = ",".join(self._brokers)
        config["logger"] = self._rdkafka_logger
        return config

    def _create(self) -> Producer:
        try:
            return Producer(self._effective_config())
        except (KafkaException, ValueError, TypeError) as e:
            raise ProducerCreateError(f"error allocating kafka handler: {e}") from e

    def _client(self) -> Producer:
        if self._producer is None:
            raise ProduceError(KafkaError(KafkaError._DESTROY, "producer is closed"))
        if self._stale:
            previous = self._producer
            self._producer = self._create()
            self._stale = False
            # Serve pending delivery reports without waiting on the network
            remaining = previous.flush(0)
            if remaining:
                previous.purge(in_queue=True, in_flight=True, blocking=False)
                previous.poll(0)
                logger.warning("kafka_rebuild_dropped", remaining_messages=remaining)
        return self._producer

    def _on_delivery(self, err: KafkaError | None, msg: Message) -> None:
        if err:
            DELIVERY_FAILURES.labels(topic=msg.topic()).inc()
            logger.error(
                "kafka_delivery_failed",
                error=err.str(),
                topic=msg.topic(),
                partition=msg.partition(),
            )
        else:
            logger.debug(
                "kafka_delivered",
                topic=msg.topic(),
                partition=msg.partition(),
                offset=msg.offset(),
            )

    def set_log_level(self, level: int) -> None:
        self._rdkafka_logger.setLevel(syslog_to_logging(level))

    def add_brokers(self, address: str) -> int:
        added = parse_brokers(address)
        if added:
            self._brokers.extend(added)
            self._stale = True
        return len(added)

    def bind_topic(self, name: str, properties: dict[str, str]) -> None:
        """Merge a topic's properties into the producer configuration."""
        if not _TOPIC_RE.match(name):
            raise TopicCreateError(f'invalid topic name "{name}"')
        merged = {**self._topic_properties, **properties}
        if merged != self._topic_properties:
            self._topic_properties = merged
            self._stale = True
        try:
            self._client()
        except (ProducerCreateError, ProduceError) as e:
            raise TopicCreateError(str(e)) from e

    def produce(
        self,
        topic: str,
        partition: int,
        value: bytes,
        key: bytes | None,
    ) -> None:
        try:
            producer = self._client()
        except ProducerCreateError as e:
            raise ProduceError(KafkaError(KafkaError._INVALID_ARG, str(e))) from e
        try:
            producer.produce(
                topic,
                value=value,
                key=key,
                partition=partition,
                on_delivery=self._on_delivery,
            )
        except BufferError as e:
            raise ProduceError(KafkaError(KafkaError._QUEUE_FULL, str(e))) from e
        except KafkaException as e:
            raise ProduceError(e.args[0]) from e
        producer.poll(0)

    def queue_length(self) -> int:
        if self._producer is None:
            return 0
        return len(self._producer)

    def poll(self, timeout: float = 0) -> int:
        if self._producer is None:
            return 0
        return self._producer.poll(timeout)

    def flush(self, timeout: float = -1) -> int:
        if self._producer is None:
            return 0
        return self._producer.flush(timeout)

    def close(self) -> None:
        """Drop undelivered records and release the producer."""
        if self._producer is None:
            return
        self._producer.purge(in_queue=True, in_flight=True, blocking=False)
        self._producer.poll(0)
        self._producer = None


class ConfluentBrokerClient:
    """BrokerClient implementation over confluent-kafka."""

    def new_client_config(self) -> ClientConfig:
        return ClientConfig()

    def new_topic_config(self) -> TopicConfig:
        return TopicConfig()

    def new_producer(self, config: ClientConfig) -> ConfluentProducerHandle:
        return ConfluentProducerHandle(config.consume())

    def new_topic(
        self,
        producer: ProducerHandle,
        name: str,
        topic_config: TopicConfig | None,
    ) -> TopicHandle:
        if not isinstance(producer, ConfluentProducerHandle):
            raise TopicCreateError(f"unsupported producer handle {type(producer).__name__}")
        properties = topic_config.consume() if topic_config is not None else {}
        producer.bind_topic(name, properties)
        return TopicHandle(name=name, producer=producer)
