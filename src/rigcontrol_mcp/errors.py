"""Exception hierarchy for rig control.

Every failure that crosses the public API is a :class:`RigError` subclass.
Wire-level errors keep the offending bytes on ``data`` so they can be
logged without the caller having to parse messages.
"""

from __future__ import annotations


class RigError(Exception):
    """Base class for all rig control errors."""

    def __init__(self, message: str, data: bytes | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def __str__(self) -> str:
        if self.data is None:
            return self.message
        return f"{self.message} (data: {_render(self.data)})"


class NotConnected(RigError):
    """An operation was attempted without an open connection."""

    def __init__(self, message: str = "Not connected to radio") -> None:
        super().__init__(message)


class Timeout(RigError, TimeoutError):
    """No complete reply arrived within the response timeout."""


class InvalidResponse(RigError):
    """The radio replied with bytes that could not be parsed."""


class CommandFailed(RigError):
    """The radio explicitly rejected a command (NAK or error token)."""


class Busy(RigError):
    """The radio is busy (e.g. transmitting) and rejected the command.

    Busy is transient. Callers may retry after a backoff of their choosing.
    """


class UnsupportedOperation(RigError):
    """The connected model does not support the requested operation."""


class InvalidParameter(RigError, ValueError):
    """An argument was out of range and nothing was sent to the radio."""


class TransportError(RigError, ConnectionError):
    """The serial transport could not be opened, written or read."""


def _render(data: bytes) -> str:
    if data and all(0x20 <= b < 0x7F for b in data):
        return repr(data.decode("ascii"))
    return data.hex(" ").upper() if data else "(empty)"
