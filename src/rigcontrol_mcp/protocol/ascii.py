"""ASCII command codec shared by Kenwood, Elecraft and Yaesu radios.

Wire shape::

    +----------+----------------------------+------------+
    | Mnemonic |  Parameters                | Terminator |
    | 2+ chars |  fixed-width, zero-padded  |  ';'       |
    +----------+----------------------------+------------+

    set     FA00014230000;
    query   FA;
    reply   FA00014230000;

Frequencies are decimal digit strings here, not packed BCD. Field
positions inside a reply are fixed per vendor, so replies are decoded by
slicing and every slice is bounds-checked against the reply length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import InvalidParameter, InvalidResponse

TERMINATOR = ord(";")

_MNEMONIC = re.compile(r"[A-Z]{2,3}[0-9]?")
_PARAM = re.compile(r"[0-9A-Z+\- ]*")


def digits(value: int, width: int) -> str:
    """Format ``value`` as exactly ``width`` zero-padded decimal digits."""
    if value < 0 or value >= 10**width:
        raise InvalidParameter(f"Value {value} does not fit in {width} digits")
    return f"{value:0{width}d}"


def build_command(mnemonic: str, *params: str | tuple[int, int]) -> bytes:
    """Build a command such as ``build_command("FA", (14230000, 11))``.

    Args:
        mnemonic: Command letters, optionally followed by one index digit
            (``MD0`` on Yaesu).
        params: Parameter fields, concatenated in order. Each is either a
            pre-formatted string or a ``(value, width)`` pair formatted
            with :func:`digits`.
    """
    if not _MNEMONIC.fullmatch(mnemonic):
        raise InvalidParameter(f"Invalid mnemonic: {mnemonic!r}")
    body = "".join(
        param if isinstance(param, str) else digits(*param) for param in params
    )
    if not _PARAM.fullmatch(body):
        raise InvalidParameter(f"Invalid parameter characters: {body!r}")
    return f"{mnemonic}{body};".encode("ascii")


def decode(data: bytes) -> str:
    """Decode a reply and strip the terminator."""
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError:
        raise InvalidResponse("Reply is not ASCII", data) from None
    if not text.endswith(";"):
        raise InvalidResponse("Reply is missing the ';' terminator", data)
    return text[:-1]


def parse_response(data: bytes, expected: str) -> str:
    """Return the parameter part of a reply to ``expected``.

    Raises:
        InvalidResponse: If the reply does not start with ``expected``.
    """
    text = decode(data)
    if not text.startswith(expected):
        raise InvalidResponse(f"Expected {expected} reply", data)
    return text[len(expected):]


def field(text: str, start: int, end: int, data: bytes | None = None) -> str:
    """Slice ``text[start:end]``, refusing to run past its end."""
    if end > len(text) or start < 0 or start >= end:
        raise InvalidResponse(
            f"Field [{start}:{end}] outside {len(text)}-character reply",
            data if data is not None else text.encode("ascii", "replace"),
        )
    return text[start:end]


def parse_int(text: str, data: bytes | None = None) -> int:
    """Parse a decimal field, allowing a leading sign."""
    body = text.strip()
    if not re.fullmatch(r"[+-]?\d+", body):
        raise InvalidResponse(
            f"Non-decimal field {text!r}",
            data if data is not None else text.encode("ascii", "replace"),
        )
    return int(body)


def parse_flag(text: str, data: bytes | None = None) -> bool:
    if text not in ("0", "1"):
        raise InvalidResponse(
            f"Expected 0 or 1, got {text!r}",
            data if data is not None else text.encode("ascii", "replace"),
        )
    return text == "1"


@dataclass(frozen=True)
class StatusLayout:
    """Field positions inside an ``IF`` status reply (terminator stripped).

    Each field is a ``(start, end)`` slice of the full reply text, including
    the ``IF`` prefix. Fields a vendor does not report are ``None``.
    """

    frequency: tuple[int, int]
    rit_offset: tuple[int, int] | None = None
    rit: int | None = None
    xit: int | None = None
    transmit: int | None = None
    mode: int | None = None
    vfo: int | None = None
    split: int | None = None


@dataclass
class Status:
    """Decoded ``IF`` status."""

    frequency: int
    rit_offset: int = 0
    rit: bool = False
    xit: bool = False
    transmit: bool | None = None
    mode_code: str | None = None
    vfo_code: str | None = None
    split: bool | None = None


def parse_status(data: bytes, layout: StatusLayout) -> Status:
    """Decode an ``IF`` reply using a vendor's field layout."""
    text = decode(data)
    if not text.startswith("IF"):
        raise InvalidResponse("Expected IF reply", data)

    def char(index: int | None) -> str | None:
        if index is None:
            return None
        return field(text, index, index + 1, data)

    def flag(index: int | None) -> bool | None:
        value = char(index)
        return None if value is None else parse_flag(value, data)

    status = Status(frequency=parse_int(field(text, *layout.frequency, data), data))
    if layout.rit_offset is not None:
        status.rit_offset = parse_int(field(text, *layout.rit_offset, data), data)
    status.rit = bool(flag(layout.rit))
    status.xit = bool(flag(layout.xit))
    status.transmit = flag(layout.transmit)
    status.mode_code = char(layout.mode)
    status.vfo_code = char(layout.vfo)
    status.split = flag(layout.split)
    return status
