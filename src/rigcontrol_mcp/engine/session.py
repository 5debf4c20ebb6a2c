"""One open link to a radio: echo handling, pacing and the request lock.

The serial line is half-duplex, so a session allows one request in
flight. Callers hold :attr:`Session.lock` across multi-step operations
(select a VFO, then read it) so another thread cannot interleave.

Timing rules applied to every request:

- ``command_delay`` is the minimum gap between the previous send/receive
  and the next write. Slow radios (K2) drop commands otherwise.
- ``response_timeout`` bounds one whole exchange, including any replies
  that were skipped as unrelated.
- After a timeout the input buffer is flushed before the next write so a
  late reply cannot be taken as the answer to a different request.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..errors import Busy, NotConnected, Timeout
from ..models.capabilities import EchoMode, QuirkProfile
from ..transport.base import Transport

logger = logging.getLogger(__name__)


class Session:
    """Owns a transport and applies a model's quirk profile to it."""

    def __init__(
        self,
        transport: Transport,
        quirks: QuirkProfile,
        terminator: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.quirks = quirks
        self.terminator = terminator
        self.lock = threading.RLock()
        self.echo_enabled: bool | None = None
        self._clock = clock
        self._sleep = sleep
        self._open = False
        self._last_io: float | None = None
        self._needs_flush = False
        self._reset_echo()

    @property
    def connected(self) -> bool:
        return self._open and self.transport.connected

    def open(self) -> None:
        with self.lock:
            self.transport.open()
            try:
                self.transport.flush()
            except Exception:
                self.transport.close()
                raise
            self._open = True
            self._last_io = None
            self._needs_flush = False
            self._reset_echo()

    def close(self) -> None:
        with self.lock:
            try:
                self.transport.close()
            finally:
                self._open = False

    def send(self, request: bytes) -> None:
        """Write a command that gets no reply.

        If the interface is known to echo, the echo is read and discarded.
        """
        with self.lock:
            self._write(request)
            if self.echo_enabled:
                deadline = self._clock() + self.quirks.response_timeout
                echo = self._read(deadline)
                if echo != request:
                    logger.warning(
                        "Expected echo of %s, got %s", request.hex(" "), echo.hex(" ")
                    )

    def exchange(
        self,
        request: bytes,
        accept: Callable[[bytes], bool] | None = None,
        detect_echo: bool = True,
    ) -> bytes:
        """Write ``request`` and return the reply.

        Args:
            request: Complete command bytes, terminator included.
            accept: Predicate for replies that belong to this request.
                Others are logged and skipped until the deadline.
            detect_echo: Allow echo auto-detection on this exchange. Must be
                False when a genuine reply may equal the request (ASCII SET
                commands acknowledged by echo).

        Raises:
            Timeout: If no complete, accepted reply arrives in time.
            Busy: If the reply is the model's busy token.
        """
        with self.lock:
            self._write(request)
            deadline = self._clock() + self.quirks.response_timeout

            pending: bytes | None = None
            if self.echo_enabled:
                first = self._read(deadline)
                if first != request:
                    logger.warning(
                        "Expected echo of %s, got %s", request.hex(" "), first.hex(" ")
                    )
                    pending = first
            elif self.echo_enabled is None and detect_echo:
                first = self._read(deadline)
                self.echo_enabled = first == request
                logger.info(
                    "Interface echo %s", "detected" if self.echo_enabled else "not present"
                )
                if not self.echo_enabled:
                    pending = first

            while True:
                reply = pending if pending is not None else self._read(deadline)
                pending = None
                if self.quirks.busy_token is not None and reply == self.quirks.busy_token:
                    raise Busy("Radio is busy", reply)
                if accept is None or accept(reply):
                    return reply
                logger.debug("Skipping unrelated reply %s", reply.hex(" "))

    def _reset_echo(self) -> None:
        self.echo_enabled = {
            EchoMode.ON: True,
            EchoMode.OFF: False,
            EchoMode.AUTO: None,
        }[self.quirks.echo]

    def _write(self, request: bytes) -> None:
        if not self.connected:
            raise NotConnected()
        if self._needs_flush:
            self.transport.flush()
            self._needs_flush = False
        self._pace()
        self.transport.write(request)
        self._last_io = self._clock()

    def _read(self, deadline: float) -> bytes:
        remaining = deadline - self._clock()
        if remaining <= 0:
            self._needs_flush = True
            raise Timeout(f"No reply within {self.quirks.response_timeout}s")
        data = self.transport.read_until(self.terminator, remaining)
        self._last_io = self._clock()
        if not data:
            self._needs_flush = True
            raise Timeout(f"No reply within {self.quirks.response_timeout}s")
        if data[-1] != self.terminator:
            self._needs_flush = True
            raise Timeout("Reply cut off before its terminator", data)
        return data

    def _pace(self) -> None:
        delay = self.quirks.command_delay
        if delay <= 0 or self._last_io is None:
            return
        wait = self._last_io + delay - self._clock()
        if wait > 0:
            self._sleep(wait)
