"""Packed-decimal (BCD) field encoding used by CI-V.

Each byte holds two decimal digits, tens in the high nibble. Multi-byte
fields are stored least significant pair first::

    14,230,000 Hz  ->  00 00 23 14 00
                       |  |  |  |  +-- 1 GHz / 100 MHz digits
                       |  |  |  +----- 10 MHz / 1 MHz
                       |  |  +-------- 100 kHz / 10 kHz
                       |  +----------- 1 kHz / 100 Hz
                       +-------------- 10 Hz / 1 Hz

Level fields (power, meters) are the exception: two bytes, most
significant pair first, e.g. 255 -> ``02 55``.
"""

from __future__ import annotations

from ..errors import InvalidParameter, InvalidResponse

FREQUENCY_WIDTH = 5
LEVEL_MAX = 255
OFFSET_MAX = 9999


def encode_decimal(value: int, width: int) -> bytes:
    """Encode a non-negative integer as ``width`` BCD bytes, LSB pair first.

    Raises:
        InvalidParameter: If ``value`` does not fit in ``width`` bytes.
    """
    if value < 0 or value >= 100**width:
        raise InvalidParameter(
            f"Value {value} does not fit in {width} BCD bytes"
        )
    out = bytearray()
    for _ in range(width):
        value, pair = divmod(value, 100)
        out.append((pair // 10) << 4 | pair % 10)
    return bytes(out)


def decode_decimal(data: bytes) -> int:
    """Decode BCD bytes stored least significant pair first.

    Raises:
        InvalidResponse: If any nibble is not a decimal digit.
    """
    value = 0
    for byte in reversed(data):
        value = value * 100 + _decode_pair(byte, data)
    return value


def encode_frequency(hz: int) -> bytes:
    return encode_decimal(hz, FREQUENCY_WIDTH)


def decode_frequency(data: bytes) -> int:
    if len(data) != FREQUENCY_WIDTH:
        raise InvalidResponse(
            f"Frequency field must be {FREQUENCY_WIDTH} bytes, got {len(data)}",
            data,
        )
    return decode_decimal(data)


def encode_level(level: int) -> bytes:
    """Encode 0-255 as two BCD bytes, most significant first."""
    if not 0 <= level <= LEVEL_MAX:
        raise InvalidParameter(f"Level must be 0-{LEVEL_MAX}, got {level}")
    return encode_decimal(level, 2)[::-1]


def decode_level(data: bytes) -> int:
    if len(data) != 2:
        raise InvalidResponse(f"Level field must be 2 bytes, got {len(data)}", data)
    return decode_decimal(data[::-1])


def encode_offset(hz: int) -> bytes:
    """Encode a signed offset as 2 BCD bytes (LSB first) plus a sign byte.

    ``+500 Hz`` -> ``00 05 00``; ``-1234 Hz`` -> ``34 12 01``.
    """
    if abs(hz) > OFFSET_MAX:
        raise InvalidParameter(f"Offset must be within ±{OFFSET_MAX} Hz, got {hz}")
    return encode_decimal(abs(hz), 2) + bytes([1 if hz < 0 else 0])


def decode_offset(data: bytes) -> int:
    if len(data) != 3:
        raise InvalidResponse(f"Offset field must be 3 bytes, got {len(data)}", data)
    if data[2] not in (0, 1):
        raise InvalidResponse(f"Invalid offset sign byte 0x{data[2]:02X}", data)
    magnitude = decode_decimal(data[:2])
    return -magnitude if data[2] else magnitude


def encode_channel(number: int) -> bytes:
    """Encode a memory channel number as two BCD bytes, most significant first."""
    if not 0 <= number <= 9999:
        raise InvalidParameter(f"Memory channel must be 0-9999, got {number}")
    return encode_decimal(number, 2)[::-1]


def _decode_pair(byte: int, data: bytes) -> int:
    high, low = byte >> 4, byte & 0x0F
    if high > 9 or low > 9:
        raise InvalidResponse(f"Non-decimal BCD byte 0x{byte:02X}", data)
    return high * 10 + low
