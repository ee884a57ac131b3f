"""
Prometheus metrics exposition.

Defines and exposes metrics for monitoring the producer.
"""

from prometheus_client import Counter, start_http_server

from jsonlog_kafka.common.config import get_settings
from jsonlog_kafka.common.logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Bootstrap metrics
# -----------------------------------------------------------------------------

CONFIG_REJECTED = Counter(
    "jsonlog_kafka_config_rejected_total",
    "Configuration properties rejected by the client",
    ["key"],
)

BROKER_REGISTRATIONS = Counter(
    "jsonlog_kafka_broker_registrations_total",
    "Broker registration attempts",
    ["outcome"],
)

# -----------------------------------------------------------------------------
# Produce metrics
# -----------------------------------------------------------------------------

RECORDS_ENQUEUED = Counter(
    "jsonlog_kafka_records_enqueued_total",
    "Records accepted into the client's send queue",
    ["topic"],
)

PRODUCE_ERRORS = Counter(
    "jsonlog_kafka_produce_errors_total",
    "Records dropped because submission failed",
    ["topic", "error"],
)

DELIVERY_FAILURES = Counter(
    "jsonlog_kafka_delivery_failures_total",
    "Records the client reported as not delivered",
    ["topic"],
)


def start_metrics_server(port: int | None = None) -> None:
    """
    Start Prometheus metrics HTTP server.

    Exposes metrics at http://localhost:{port}/metrics
    """
    if port is None:
        port = get_settings().prometheus_port

    start_http_server(port)
    logger.info("metrics_server_started", port=port)
