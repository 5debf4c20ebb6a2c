"""CI-V frame builder and parser.

Frame layout::

    +----------+------+------+---------+-------------+------------------+------------+
    | Preamble | To   | From | Command | Sub-command |     Payload      | Terminator |
    | FE FE    | 1 B  | 1 B  | 1 byte  | 0-1 byte    |  variable length |  FD        |
    +----------+------+------+---------+-------------+------------------+------------+

- To/From: bus addresses. The controller is 0xE0; each radio model has a
  default address (IC-7300 0x94, IC-9700 0xA2, ...)
- Sub-command: present only for the command groups in ``SUBCOMMAND_GROUPS``
- Payload: BCD-encoded numeric fields (see :mod:`.bcd`)
- A reply carries the request's addresses swapped; anything else on the
  bus (transceive broadcasts, other controllers) is not ours
- ACK (0xFB) and NAK (0xFA) replies have no sub-command and no payload
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidParameter, InvalidResponse

PREAMBLE = b"\xFE\xFE"
PREAMBLE_BYTE = 0xFE
TERMINATOR = 0xFD
CONTROLLER_ADDRESS = 0xE0
ACK = 0xFB
NAK = 0xFA

# Command groups whose second byte is a sub-command rather than payload.
SUBCOMMAND_GROUPS = frozenset({0x14, 0x15, 0x16, 0x19, 0x1A, 0x1C, 0x21})

MIN_FRAME_SIZE = 6  # FE FE to from cmd FD


@dataclass
class Frame:
    """A parsed CI-V frame."""

    dest: int
    src: int
    command: int
    sub_command: int | None = None
    payload: bytes = b""

    def __repr__(self) -> str:
        sub = f", sub=0x{self.sub_command:02X}" if self.sub_command is not None else ""
        return (
            f"Frame(to=0x{self.dest:02X}, from=0x{self.src:02X}, "
            f"command=0x{self.command:02X}{sub}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )

    @property
    def is_ack(self) -> bool:
        return self.command == ACK

    @property
    def is_nak(self) -> bool:
        return self.command == NAK

    def is_reply_to(self, dest: int, src: int) -> bool:
        """True if this frame answers a request sent from ``src`` to ``dest``."""
        return self.dest == src and self.src == dest

    def to_bytes(self) -> bytes:
        return encode_frame(
            self.dest, self.src, self.command, self.payload, self.sub_command
        )


def encode_frame(
    dest: int,
    src: int,
    command: int,
    payload: bytes = b"",
    sub_command: int | None = None,
) -> bytes:
    """Build a complete CI-V frame.

    Args:
        dest: Radio address.
        src: Controller address, normally ``CONTROLLER_ADDRESS``.
        command: Command group byte.
        payload: Command data, already BCD-encoded where applicable.
        sub_command: Sub-command byte for groups that take one.

    Returns:
        ``FE FE dest src command [sub_command] payload FD``.
    """
    header = [dest, src, command]
    if sub_command is not None:
        header.append(sub_command)
    for value in header:
        if not 0 <= value <= 0xFF:
            raise InvalidParameter(f"Frame byte out of range: {value}")
    if TERMINATOR in payload:
        raise InvalidParameter("Payload must not contain the terminator byte")
    return PREAMBLE + bytes(header) + payload + bytes([TERMINATOR])


def parse_frame(data: bytes) -> Frame:
    """Parse one CI-V frame.

    Extra leading ``FE`` bytes, which radios send to wake the bus, are
    skipped.

    Raises:
        InvalidResponse: If the bytes are not a well-formed frame.
    """
    start = 0
    while start + 2 < len(data) and data[start + 2] == PREAMBLE_BYTE:
        start += 1
    body = data[start:]

    if len(body) < MIN_FRAME_SIZE:
        raise InvalidResponse("Frame too short", data)
    if body[:2] != PREAMBLE:
        raise InvalidResponse("Missing CI-V preamble", data)
    if body[-1] != TERMINATOR:
        raise InvalidResponse("Missing CI-V terminator", data)

    dest, src, command = body[2], body[3], body[4]
    rest = body[5:-1]
    if TERMINATOR in rest:
        raise InvalidResponse("Unexpected terminator inside frame", data)

    sub_command = None
    if command in SUBCOMMAND_GROUPS:
        if not rest:
            raise InvalidResponse(
                f"Command 0x{command:02X} is missing its sub-command", data
            )
        sub_command, rest = rest[0], rest[1:]

    return Frame(
        dest=dest, src=src, command=command, sub_command=sub_command, payload=bytes(rest)
    )
