"""Tests for string materialization."""

import pytest

from jsonlog_kafka.common.strings import to_bytes, to_config_value


class TestToBytes:
    def test_none_stays_none(self) -> None:
        assert to_bytes(None) is None

    def test_text_is_utf8_encoded(self) -> None:
        assert to_bytes("ação") == "ação".encode("utf-8")

    def test_memoryview_is_copied(self) -> None:
        source = bytearray(b"abc")
        copied = to_bytes(memoryview(source))
        source[0] = ord("x")

        assert copied == b"abc"

    def test_rejects_other_types(self) -> None:
        with pytest.raises(TypeError, match="int"):
            to_bytes(42)


class TestToConfigValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(100000, "100000"), (True, "true"), (False, "false"), (b"snappy", "snappy"), ("0", "0")],
    )
    def test_renders_librdkafka_strings(self, value, expected) -> None:
        assert to_config_value(value) == expected
