"""Shared fakes: scripted and silent transports and a simulated CI-V radio."""

from __future__ import annotations

import time
from collections import deque

import pytest

from rigcontrol_mcp.models.vfo import VFO, Band
from rigcontrol_mcp.protocol.bcd import (
    decode_frequency,
    decode_level,
    decode_offset,
    encode_frequency,
    encode_level,
    encode_offset,
)
from rigcontrol_mcp.protocol.framing import ACK, CONTROLLER_ADDRESS, NAK, encode_frame, parse_frame


class ScriptedTransport:
    """Replays canned replies, one per read, and records every write."""

    def __init__(self, replies=()):
        self.replies = deque(replies)
        self.writes: list[bytes] = []
        self.flushes = 0
        self.is_open = False

    @property
    def connected(self) -> bool:
        return self.is_open

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def flush(self) -> None:
        self.flushes += 1

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    def read_until(self, terminator: int, timeout: float) -> bytes:
        if self.replies:
            return self.replies.popleft()
        return b""

    def queue(self, *replies: bytes) -> None:
        self.replies.extend(replies)


class SilentTransport(ScriptedTransport):
    """A radio that never answers: every read waits out its timeout."""

    def read_until(self, terminator: int, timeout: float) -> bytes:
        time.sleep(timeout)
        return b""


class SimulatedCivRadio:
    """In-memory CI-V radio with main/sub receivers, each with VFO A/B.

    Args:
        address: The radio's CI-V address.
        echo: Reflect every written frame before replying, like a
            single-wire CI-V bus.
        dual: B0 swaps main and sub; otherwise it swaps A and B.
        accepts_filter: NAK a set-mode request that carries a filter byte
            when False (IC-7100 behaviour).
    """

    def __init__(self, address=0x94, echo=False, dual=False, accepts_filter=True):
        self.address = address
        self.echo = echo
        self.dual = dual
        self.accepts_filter = accepts_filter
        self.slots = {
            (band, vfo): {"frequency": 14_000_000, "mode": 0x01, "filter": 0x01}
            for band in Band
            for vfo in VFO
        }
        self.band = Band.MAIN
        self.vfo = {Band.MAIN: VFO.A, Band.SUB: VFO.A}
        self.split = False
        self.power_level = 255
        self.ptt = False
        self.rit_offset = 0
        self.rit_on = False
        self.xit_on = False
        self.s_meter = 0
        self.functions = {0x12: 0x02, 0x22: 0, 0x40: 0}  # AGC MID, NB off, NR off
        self.levels = {0x06: 0, 0x12: 0}
        self.memories: dict[int, dict] = {}
        self.channel = 1
        self.memory_mode = False
        self.nak_commands: set[int] = set()
        self.noise: list[bytes] = []
        self.writes: list[bytes] = []
        self.is_open = False
        self._output: deque[bytes] = deque()

    # ─── Transport ─────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self.is_open

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def flush(self) -> None:
        self._output.clear()

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))
        if self.echo:
            self._output.append(bytes(data))
        self._output.extend(self.noise)
        self.noise = []
        reply = self._handle(parse_frame(data))
        if reply is not None:
            self._output.append(reply)

    def read_until(self, terminator: int, timeout: float) -> bytes:
        if self._output:
            return self._output.popleft()
        return b""

    # ─── Radio state ───────────────────────────────────────────────

    @property
    def slot(self) -> dict:
        return self.slots[(self.band, self.vfo[self.band])]

    def frequency_of(self, band: Band, vfo: VFO) -> int:
        return self.slots[(band, vfo)]["frequency"]

    def _reply(self, command, payload=b"", sub_command=None) -> bytes:
        return encode_frame(CONTROLLER_ADDRESS, self.address, command, payload, sub_command)

    def _ack(self) -> bytes:
        return self._reply(ACK)

    def _nak(self) -> bytes:
        return self._reply(NAK)

    def _handle(self, frame):
        if frame.dest != self.address:
            return None
        cmd, sub, data = frame.command, frame.sub_command, frame.payload
        if cmd in self.nak_commands:
            return self._nak()

        if cmd in (0x03, 0x04) and self.memory_mode:
            stored = self.memories.get(self.channel)
            if stored is None:
                return self._reply(cmd, b"\xFF")
            if cmd == 0x03:
                return self._reply(0x03, encode_frequency(stored["frequency"]))
            return self._reply(0x04, bytes([stored["mode"], stored["filter"]]))
        if cmd == 0x03:
            return self._reply(0x03, encode_frequency(self.slot["frequency"]))
        if cmd == 0x04:
            return self._reply(0x04, bytes([self.slot["mode"], self.slot["filter"]]))
        if cmd == 0x05:
            self.slot["frequency"] = decode_frequency(data)
            return self._ack()
        if cmd == 0x06:
            if len(data) == 2 and not self.accepts_filter:
                return self._nak()
            self.slot["mode"] = data[0]
            if len(data) == 2:
                self.slot["filter"] = data[1]
            return self._ack()
        if cmd == 0x07:
            if not data:
                self.memory_mode = False
                return self._ack()
            return self._select(data[0])
        if cmd == 0x08:
            if data:
                self.channel = decode_level(data)
            else:
                self.memory_mode = True
            return self._ack()
        if cmd == 0x09:
            self.memories[self.channel] = dict(self.slot)
            return self._ack()
        if cmd == 0x0B:
            self.memories.pop(self.channel, None)
            return self._ack()
        if cmd == 0x16 and sub in self.functions:
            if data:
                self.functions[sub] = data[0]
                return self._ack()
            return self._reply(0x16, bytes([self.functions[sub]]), sub)
        if cmd == 0x14 and sub in self.levels:
            if data:
                self.levels[sub] = decode_level(data)
                return self._ack()
            return self._reply(0x14, encode_level(self.levels[sub]), sub)
        if cmd == 0x0F:
            if data:
                self.split = data[0] == 1
                return self._ack()
            return self._reply(0x0F, bytes([int(self.split)]))
        if cmd == 0x14 and sub == 0x0A:
            if data:
                self.power_level = decode_level(data)
                return self._ack()
            return self._reply(0x14, encode_level(self.power_level), 0x0A)
        if cmd == 0x15 and sub == 0x02:
            return self._reply(0x15, encode_level(self.s_meter), 0x02)
        if cmd == 0x1C and sub == 0x00:
            if data:
                self.ptt = data[0] == 1
                return self._ack()
            return self._reply(0x1C, bytes([int(self.ptt)]), 0x00)
        if cmd == 0x21 and sub == 0x00:
            if data:
                self.rit_offset = decode_offset(data)
                return self._ack()
            return self._reply(0x21, encode_offset(self.rit_offset), 0x00)
        if cmd == 0x21 and sub in (0x01, 0x02):
            attr = "rit_on" if sub == 0x01 else "xit_on"
            if data:
                setattr(self, attr, data[0] == 1)
                return self._ack()
            return self._reply(0x21, bytes([int(getattr(self, attr))]), sub)
        if cmd == 0x19 and sub == 0x00:
            return self._reply(0x19, bytes([self.address]), 0x00)
        return self._nak()

    def _select(self, code: int) -> bytes:
        if code == 0x00:
            self.vfo[self.band] = VFO.A
        elif code == 0x01:
            self.vfo[self.band] = VFO.B
        elif code == 0xD0:
            self.band = Band.MAIN
        elif code == 0xD1:
            self.band = Band.SUB
        elif code == 0xB0:
            if self.dual:
                for vfo in VFO:
                    main, sub = (Band.MAIN, vfo), (Band.SUB, vfo)
                    self.slots[main], self.slots[sub] = self.slots[sub], self.slots[main]
            else:
                a, b = (self.band, VFO.A), (self.band, VFO.B)
                self.slots[a], self.slots[b] = self.slots[b], self.slots[a]
        elif code == 0xA0:
            self.slots[(self.band, VFO.B)] = dict(self.slots[(self.band, VFO.A)])
        elif code == 0xB1:
            for vfo in VFO:
                self.slots[(Band.SUB, vfo)] = dict(self.slots[(Band.MAIN, vfo)])
        else:
            return self._nak()
        return self._ack()


def kenwood_if(freq=14_230_000, offset=0, rit=False, xit=False, tx=False,
               mode="2", vfo="0", split=False) -> bytes:
    """A TS-480 style IF status reply."""
    return (
        f"IF{freq:011d}     {offset:+05d}{int(rit)}{int(xit)}000"
        f"{int(tx)}{mode}{vfo}0{int(split)}000 ;"
    ).encode("ascii")


def yaesu_if(freq=14_230_000, offset=0, rit=False, xit=False, mode="2") -> bytes:
    """An FT-991A style IF status reply."""
    return (
        f"IF001{freq:09d}{offset:+05d}{int(rit)}{int(xit)}{mode}00000;"
    ).encode("ascii")


class FakeClock:
    """Manual clock; ``sleep`` advances it and records the request."""

    def __init__(self, now=100.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def scripted():
    return ScriptedTransport()


@pytest.fixture
def silent():
    return SilentTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ic7300_radio():
    return SimulatedCivRadio(address=0x94)
