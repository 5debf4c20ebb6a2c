"""Tests for packed-decimal field encoding."""

import pytest

from rigcontrol_mcp.errors import InvalidParameter, InvalidResponse
from rigcontrol_mcp.protocol.bcd import (
    decode_decimal,
    decode_frequency,
    decode_level,
    decode_offset,
    encode_channel,
    encode_decimal,
    encode_frequency,
    encode_level,
    encode_offset,
)


def test_frequency_layout():
    """14.23 MHz is stored least significant pair first."""
    assert encode_frequency(14_230_000) == bytes([0x00, 0x00, 0x23, 0x14, 0x00])


def test_frequency_ghz_digits():
    """The top byte carries the 1 GHz / 100 MHz digits."""
    assert encode_frequency(1_296_100_000) == bytes([0x00, 0x00, 0x10, 0x96, 0x12])


def test_frequency_round_trip_across_range():
    """Any frequency up to 9,999,999,999 Hz survives encode then decode."""
    samples = [0, 1, 9, 10, 99, 100, 30_000, 7_074_000, 9_999_999_999]
    samples += range(0, 10**10, 123_456_789)
    for hz in samples:
        assert decode_frequency(encode_frequency(hz)) == hz


def test_frequency_too_large():
    """Eleven digits do not fit in five bytes."""
    with pytest.raises(InvalidParameter):
        encode_frequency(10**10)


def test_negative_value_rejected():
    with pytest.raises(InvalidParameter):
        encode_decimal(-1, 2)


def test_decode_rejects_non_decimal_nibble():
    """0x1A is not a BCD byte."""
    with pytest.raises(InvalidResponse):
        decode_decimal(bytes([0x00, 0x1A]))


def test_decode_rejects_high_nibble():
    with pytest.raises(InvalidResponse):
        decode_frequency(bytes([0x00, 0x00, 0xA0, 0x14, 0x00]))


def test_decode_frequency_wrong_width():
    with pytest.raises(InvalidResponse):
        decode_frequency(bytes([0x00, 0x00, 0x23, 0x14]))


def test_level_is_most_significant_first():
    """255 encodes as 02 55."""
    assert encode_level(255) == bytes([0x02, 0x55])
    assert encode_level(0) == bytes([0x00, 0x00])
    assert decode_level(bytes([0x01, 0x28])) == 128


def test_level_out_of_range():
    with pytest.raises(InvalidParameter):
        encode_level(256)


def test_offset_positive_and_negative():
    """Sign travels in a trailing byte: 00 positive, 01 negative."""
    assert encode_offset(500) == bytes([0x00, 0x05, 0x00])
    assert encode_offset(-1234) == bytes([0x34, 0x12, 0x01])
    assert decode_offset(bytes([0x34, 0x12, 0x01])) == -1234
    assert decode_offset(bytes([0x99, 0x99, 0x00])) == 9999


def test_offset_limits():
    with pytest.raises(InvalidParameter):
        encode_offset(10_000)
    with pytest.raises(InvalidResponse):
        decode_offset(bytes([0x00, 0x05, 0x02]))


def test_channel_is_most_significant_first():
    assert encode_channel(1) == bytes([0x00, 0x01])
    assert encode_channel(101) == bytes([0x01, 0x01])
    with pytest.raises(InvalidParameter):
        encode_channel(10_000)
