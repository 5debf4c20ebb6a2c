"""Byte-stream interface the protocol engines talk to."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    """Half-duplex byte stream to one radio.

    ``read_until`` behaves like pyserial's: it returns everything read up
    to and including ``terminator``, or whatever arrived (possibly nothing)
    once ``timeout`` seconds have passed. Classifying a short read is the
    caller's job.
    """

    @property
    def connected(self) -> bool: ...

    def open(self) -> None: ...

    def close(self) -> None: ...

    def flush(self) -> None: ...

    def write(self, data: bytes) -> None: ...

    def read_until(self, terminator: int, timeout: float) -> bytes: ...
