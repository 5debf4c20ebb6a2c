"""CI-V command codes and request builders.

Each builder returns the raw frame bytes for one request addressed from
the controller to ``radio``. Replies are decoded by the engine.
"""

from __future__ import annotations

from enum import IntEnum

from ..errors import InvalidResponse, UnsupportedOperation
from ..models.mode import Mode
from ..models.receiver import AgcSpeed
from .bcd import encode_channel, encode_frequency, encode_level, encode_offset
from .framing import CONTROLLER_ADDRESS, encode_frame


class Command(IntEnum):
    """CI-V command groups."""

    READ_FREQUENCY = 0x03
    READ_MODE = 0x04
    SET_FREQUENCY = 0x05
    SET_MODE = 0x06
    VFO = 0x07
    MEMORY = 0x08
    MEMORY_WRITE = 0x09
    MEMORY_CLEAR = 0x0B
    SPLIT = 0x0F
    LEVEL = 0x14
    METER = 0x15
    FUNCTION = 0x16
    READ_ID = 0x19
    PTT = 0x1C
    RIT = 0x21
    NAK = 0xFA
    ACK = 0xFB


class VfoCode(IntEnum):
    """Sub-codes of the 0x07 VFO command."""

    A = 0x00
    B = 0x01
    EQUALIZE_AB = 0xA0  # A=B
    EXCHANGE = 0xB0  # A<->B, or main<->sub on dual-receiver radios
    EQUALIZE_BANDS = 0xB1  # main=sub
    MAIN = 0xD0
    SUB = 0xD1


class LevelCode(IntEnum):
    NR_LEVEL = 0x06
    RF_POWER = 0x0A
    NB_LEVEL = 0x12


class MeterCode(IntEnum):
    S_METER = 0x02


class FunctionCode(IntEnum):
    """Sub-codes of the 0x16 on/off function command."""

    AGC = 0x12
    NOISE_BLANKER = 0x22
    NOISE_REDUCTION = 0x40


class PttCode(IntEnum):
    TRANSMIT = 0x00


class RitCode(IntEnum):
    OFFSET = 0x00
    RIT_ON = 0x01
    XIT_ON = 0x02


class IdCode(IntEnum):
    TRANSCEIVER_ID = 0x00


MODE_CODES: dict[Mode, int] = {
    Mode.LSB: 0x00,
    Mode.USB: 0x01,
    Mode.AM: 0x02,
    Mode.CW: 0x03,
    Mode.RTTY: 0x04,
    Mode.FM: 0x05,
    Mode.WFM: 0x06,
    Mode.CW_R: 0x07,
    Mode.RTTY_R: 0x08,
}
CODE_MODES: dict[int, Mode] = {code: mode for mode, code in MODE_CODES.items()}

DEFAULT_FILTER = 0x01  # FIL1

AGC_CODES: dict[AgcSpeed, int] = {
    AgcSpeed.OFF: 0x00,
    AgcSpeed.FAST: 0x01,
    AgcSpeed.MEDIUM: 0x02,
    AgcSpeed.SLOW: 0x03,
}
CODE_AGC: dict[int, AgcSpeed] = {code: speed for speed, code in AGC_CODES.items()}


def build_command(
    radio: int,
    command: int,
    payload: bytes = b"",
    sub_command: int | None = None,
) -> bytes:
    """Build a frame from the controller to ``radio``."""
    return encode_frame(radio, CONTROLLER_ADDRESS, command, payload, sub_command)


def build_read_frequency(radio: int) -> bytes:
    return build_command(radio, Command.READ_FREQUENCY)


def build_set_frequency(radio: int, hz: int) -> bytes:
    return build_command(radio, Command.SET_FREQUENCY, encode_frequency(hz))


def build_read_mode(radio: int) -> bytes:
    return build_command(radio, Command.READ_MODE)


def build_set_mode(
    radio: int,
    mode: Mode,
    with_filter: bool = True,
    filter_code: int = DEFAULT_FILTER,
) -> bytes:
    """Build a set-mode request.

    Most radios take ``[mode, filter]``; the IC-7100 family rejects the
    filter byte and takes the mode code alone.
    """
    payload = bytes([mode_code(mode)])
    if with_filter:
        payload += bytes([filter_code])
    return build_command(radio, Command.SET_MODE, payload)


def build_select(radio: int, code: VfoCode) -> bytes:
    """Build a 0x07 selection, exchange or equalize request."""
    return build_command(radio, Command.VFO, bytes([code]))


def build_read_split(radio: int) -> bytes:
    return build_command(radio, Command.SPLIT)


def build_set_split(radio: int, enabled: bool) -> bytes:
    return build_command(radio, Command.SPLIT, bytes([0x01 if enabled else 0x00]))


def build_read_level(radio: int, code: LevelCode) -> bytes:
    return build_command(radio, Command.LEVEL, sub_command=code)


def build_set_level(radio: int, code: LevelCode, level: int) -> bytes:
    """Build a 0x14 level write; ``level`` is 0-255."""
    return build_command(radio, Command.LEVEL, encode_level(level), sub_command=code)


def build_read_power(radio: int) -> bytes:
    return build_read_level(radio, LevelCode.RF_POWER)


def build_set_power(radio: int, level: int) -> bytes:
    """Build an RF power request; ``level`` is 0-255 of maximum power."""
    return build_set_level(radio, LevelCode.RF_POWER, level)


def build_read_function(radio: int, code: FunctionCode) -> bytes:
    return build_command(radio, Command.FUNCTION, sub_command=code)


def build_set_function(radio: int, code: FunctionCode, value: int) -> bytes:
    """Build a 0x16 write; on/off functions take 0 or 1, AGC its speed code."""
    return build_command(radio, Command.FUNCTION, bytes([value]), sub_command=code)


def build_vfo_mode(radio: int) -> bytes:
    """Leave memory mode (0x07 with no data)."""
    return build_command(radio, Command.VFO)


def build_memory_mode(radio: int) -> bytes:
    """Enter memory mode on the selected channel (0x08 with no data)."""
    return build_command(radio, Command.MEMORY)


def build_select_memory(radio: int, number: int) -> bytes:
    return build_command(radio, Command.MEMORY, encode_channel(number))


def build_memory_write(radio: int) -> bytes:
    """Store the VFO contents into the selected channel."""
    return build_command(radio, Command.MEMORY_WRITE)


def build_memory_clear(radio: int) -> bytes:
    return build_command(radio, Command.MEMORY_CLEAR)


def build_read_s_meter(radio: int) -> bytes:
    return build_command(radio, Command.METER, sub_command=MeterCode.S_METER)


def build_read_ptt(radio: int) -> bytes:
    return build_command(radio, Command.PTT, sub_command=PttCode.TRANSMIT)


def build_set_ptt(radio: int, transmit: bool) -> bytes:
    return build_command(
        radio,
        Command.PTT,
        bytes([0x01 if transmit else 0x00]),
        sub_command=PttCode.TRANSMIT,
    )


def build_read_rit_offset(radio: int) -> bytes:
    return build_command(radio, Command.RIT, sub_command=RitCode.OFFSET)


def build_set_rit_offset(radio: int, hz: int) -> bytes:
    """Build a RIT/XIT offset request. RIT and XIT share one offset."""
    return build_command(radio, Command.RIT, encode_offset(hz), sub_command=RitCode.OFFSET)


def build_read_switch(radio: int, code: RitCode) -> bytes:
    """Build a read of the RIT or XIT on/off switch."""
    return build_command(radio, Command.RIT, sub_command=code)


def build_set_switch(radio: int, code: RitCode, enabled: bool) -> bytes:
    return build_command(
        radio, Command.RIT, bytes([0x01 if enabled else 0x00]), sub_command=code
    )


def build_read_id(radio: int) -> bytes:
    return build_command(radio, Command.READ_ID, sub_command=IdCode.TRANSCEIVER_ID)


def mode_code(mode: Mode) -> int:
    try:
        return MODE_CODES[mode]
    except KeyError:
        raise UnsupportedOperation(f"Mode {mode} has no CI-V code") from None


def decode_mode(payload: bytes) -> Mode:
    """Decode a read-mode reply payload (``[mode]`` or ``[mode, filter]``)."""
    if not 1 <= len(payload) <= 2:
        raise InvalidResponse("Mode reply must be 1-2 bytes", payload)
    try:
        return CODE_MODES[payload[0]]
    except KeyError:
        raise InvalidResponse(f"Unknown CI-V mode code 0x{payload[0]:02X}", payload) from None
