"""
Conversion of caller-owned strings into values the Kafka client accepts.

Payloads and keys are copied into owned bytes so the caller may reuse
its buffer as soon as the call returns.
"""

BytesLike = str | bytes | bytearray | memoryview


def to_bytes(value: BytesLike | None) -> bytes | None:
    """
    Copy a string or buffer into an owned bytes object.

    Args:
        value: Text (encoded as UTF-8) or any bytes-like buffer.

    Returns:
        A new bytes object, or None when value is None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"expected str or bytes-like, got {type(value).__name__}")


def to_config_value(value: str | int | bool | bytes) -> str:
    """Render a configuration value the way librdkafka expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)
