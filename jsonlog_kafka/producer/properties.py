"""
librdkafka producer property table.

Each property set on a ClientConfig or TopicConfig is checked before it
is stored, so that a bad key or value is reported for that key alone
instead of failing producer construction. Properties in the table are
checked locally, with librdkafka's rd_kafka_conf_set() error strings;
any other property is handed to librdkafka itself.
"""

from dataclasses import dataclass

from confluent_kafka import KafkaError, KafkaException, Producer

from jsonlog_kafka.producer.errors import ConfigError

GLOBAL = "global"
TOPIC = "topic"

INT32_MAX = 2147483647


@dataclass(frozen=True)
class Property:
    name: str
    scope: str
    kind: str  # string | integer | boolean | enum | flags
    minimum: int = 0
    maximum: int = 0
    values: tuple[str, ...] = ()
    symbols: tuple[tuple[str, str], ...] = ()


PROPERTIES = {
    p.name: p
    for p in (
        Property("client.id", GLOBAL, "string"),
        Property("bootstrap.servers", GLOBAL, "string"),
        Property(
            "debug",
            GLOBAL,
            "flags",
            values=(
                "generic", "broker", "topic", "metadata", "feature", "queue",
                "msg", "protocol", "cgrp", "security", "fetch", "interceptor",
                "plugin", "consumer", "admin", "eos", "mock", "assignor",
                "conf", "telemetry", "all",
            ),
        ),
        Property("log_level", GLOBAL, "integer", 0, 7),
        Property(
            "compression.codec",
            GLOBAL,
            "enum",
            values=("none", "gzip", "snappy", "lz4", "zstd"),
        ),
        Property("message.send.max.retries", GLOBAL, "integer", 0, INT32_MAX),
        Property("retry.backoff.ms", GLOBAL, "integer", 1, 300000),
        Property("retry.backoff.max.ms", GLOBAL, "integer", 1, 300000),
        Property("queue.buffering.max.messages", GLOBAL, "integer", 1, INT32_MAX),
        Property("queue.buffering.max.kbytes", GLOBAL, "integer", 1, INT32_MAX),
        Property("queue.buffering.max.ms", GLOBAL, "integer", 0, 900000),
        Property("batch.num.messages", GLOBAL, "integer", 1, 1000000),
        Property("batch.size", GLOBAL, "integer", 1, INT32_MAX),
        Property("message.max.bytes", GLOBAL, "integer", 1000, 1000000000),
        Property("socket.timeout.ms", GLOBAL, "integer", 10, 300000),
        Property("statistics.interval.ms", GLOBAL, "integer", 0, 86400000),
        Property("enable.idempotence", GLOBAL, "boolean"),
        Property(
            "security.protocol",
            GLOBAL,
            "enum",
            values=("plaintext", "ssl", "sasl_plaintext", "sasl_ssl"),
        ),
        Property("sasl.mechanisms", GLOBAL, "string"),
        Property("sasl.username", GLOBAL, "string"),
        Property("sasl.password", GLOBAL, "string"),
        Property("ssl.ca.location", GLOBAL, "string"),
        Property(
            "request.required.acks",
            TOPIC,
            "integer",
            -1,
            1000,
            symbols=(("all", "-1"),),
        ),
        Property("request.timeout.ms", TOPIC, "integer", 1, 900000),
        Property("message.timeout.ms", TOPIC, "integer", 0, INT32_MAX),
        Property(
            "partitioner",
            TOPIC,
            "enum",
            values=(
                "random", "consistent", "consistent_random", "murmur2",
                "murmur2_random", "fnv1a", "fnv1a_random",
            ),
        ),
    )
}

ALIASES = {
    "metadata.broker.list": "bootstrap.servers",
    "compression.type": "compression.codec",
    "retries": "message.send.max.retries",
    "linger.ms": "queue.buffering.max.ms",
    "acks": "request.required.acks",
    "delivery.timeout.ms": "message.timeout.ms",
}


def check_with_client(name: str, value: str) -> tuple[str, str]:
    """
    Let librdkafka judge a property the table does not describe.

    A throwaway producer is built with only this property; it never
    connects, as no broker is configured.

    Raises:
        ConfigError: With librdkafka's own error text.
    """
    try:
        Producer({name: value, "log_level": "0"})
    except KafkaException as e:
        error = e.args[0]
        reason = error.str() if isinstance(error, KafkaError) else str(error)
        raise ConfigError(name, value, reason) from e
    return name, value


def validate(name: str, value: str, scope: str) -> tuple[str, str]:
    """
    Check one property assignment.

    Args:
        name: Property name, aliases accepted.
        value: Value in librdkafka's string form.
        scope: GLOBAL for client configuration, TOPIC for topic configuration.
            Client configuration also accepts topic properties, as librdkafka
            applies them to the default topic configuration.

    Returns:
        The canonical property name and normalized value.

    Raises:
        ConfigError: If the property is unknown or the value is invalid.
    """
    prop = PROPERTIES.get(ALIASES.get(name, name))
    if prop is None:
        return check_with_client(name, value)
    if scope == TOPIC and prop.scope != TOPIC:
        raise ConfigError(name, value, f'No such configuration property: "{name}"')

    if prop.kind == "string":
        return prop.name, value

    if prop.kind == "boolean":
        lowered = value.lower()
        if lowered in ("true", "t", "1"):
            return prop.name, "true"
        if lowered in ("false", "f", "0"):
            return prop.name, "false"
        raise ConfigError(
            name, value,
            f'Expected bool value for "{name}": true or false',
        )

    if prop.kind == "enum":
        lowered = value.lower()
        if lowered not in prop.values:
            raise ConfigError(
                name, value,
                f'Invalid value "{value}" for configuration property "{name}"',
            )
        return prop.name, lowered

    if prop.kind == "flags":
        for flag in value.split(","):
            if flag.strip() not in prop.values:
                raise ConfigError(
                    name, value,
                    f'Invalid value "{flag.strip()}" for configuration property "{name}"',
                )
        return prop.name, value

    raw = dict(prop.symbols).get(value, value)
    try:
        number = int(raw)
    except ValueError:
        raise ConfigError(
            name, value,
            f'Invalid value for configuration property "{name}"',
        ) from None
    if not prop.minimum <= number <= prop.maximum:
        raise ConfigError(
            name, value,
            f'Configuration property "{name}" value {number} is outside '
            f"allowed range {prop.minimum}..{prop.maximum}",
        )
    return prop.name, str(number)
