"""CI-V engine for Icom radios.

Every request is one frame to the radio's address; every reply is one
frame back to the controller (0xE0). SET commands are answered with ACK
(FB) or NAK (FA); reads echo the command group and carry the value.
"""

from __future__ import annotations

import logging

from ..errors import CommandFailed, InvalidParameter, InvalidResponse
from ..models.capabilities import AckMode, RigCapabilities, Topology
from ..models.memory import MemoryChannel
from ..models.mode import Mode
from ..models.receiver import AgcSpeed, IfFilter, NoiseControl
from ..models.tuning import MeterCalibration, RitXitState, SignalStrength
from ..models.vfo import VFO, Band, Target
from ..protocol import commands as civ
from ..protocol.bcd import LEVEL_MAX, decode_frequency, decode_level, decode_offset
from ..protocol.commands import (
    Command,
    FunctionCode,
    IdCode,
    LevelCode,
    MeterCode,
    PttCode,
    RitCode,
    VfoCode,
)
from ..protocol.framing import CONTROLLER_ADDRESS, TERMINATOR, Frame, parse_frame
from ..transport.base import Transport
from .addressing import Step
from .base import RigEngine

logger = logging.getLogger(__name__)

# 0 = S0, 120 = S9, 241 = S9+60 dB on current Icom radios.
ICOM_S_METER = MeterCalibration(s9=120, s9_plus_60=241)

_SELECT_CODES: dict[Step, VfoCode] = {
    VFO.A: VfoCode.A,
    VFO.B: VfoCode.B,
    Band.MAIN: VfoCode.MAIN,
    Band.SUB: VfoCode.SUB,
}


class CivEngine(RigEngine):
    """Protocol engine for the Icom CI-V bus."""

    def __init__(
        self,
        capabilities: RigCapabilities,
        transport: Transport,
        address: int | None = None,
    ) -> None:
        super().__init__(capabilities, transport, TERMINATOR)
        address = address if address is not None else capabilities.civ_address
        if address is None:
            raise InvalidParameter(f"No CI-V address known for {capabilities.name}")
        self.address = address

    # ─── FRAME EXCHANGE ────────────────────────────────────────────────

    def _is_reply(self, raw: bytes) -> bool:
        return parse_frame(raw).is_reply_to(self.address, CONTROLLER_ADDRESS)

    def _request(self, request: bytes) -> Frame:
        raw = self.session.exchange(request, accept=self._is_reply)
        frame = parse_frame(raw)
        if frame.is_nak:
            raise CommandFailed("Radio rejected command (NAK)", request)
        return frame

    def _set(self, request: bytes) -> None:
        if self.capabilities.quirks.ack is AckMode.NONE:
            self.session.send(request)
            return
        frame = self._request(request)
        if not frame.is_ack:
            raise InvalidResponse(f"Expected ACK, got {frame!r}", frame.to_bytes())

    def _read(self, request: bytes, command: int, sub_command: int | None = None) -> bytes:
        frame = self._request(request)
        if frame.command != command or frame.sub_command != sub_command:
            raise InvalidResponse(f"Unexpected reply {frame!r}", frame.to_bytes())
        return frame.payload

    def _read_flag(self, request: bytes, command: int, sub_command: int | None = None) -> bool:
        payload = self._read(request, command, sub_command)
        if len(payload) != 1 or payload[0] not in (0, 1):
            raise InvalidResponse("Expected a 00/01 flag", payload)
        return payload[0] == 1

    # ─── LIFECYCLE / SELECTION ─────────────────────────────────────────

    def _handshake(self) -> None:
        logger.info(
            "CI-V session to %s at 0x%02X", self.capabilities.name, self.address
        )

    def _select(self, step: Step) -> None:
        self._set(civ.build_select(self.address, _SELECT_CODES[step]))

    def identify(self) -> str:
        payload = self._read(
            civ.build_read_id(self.address), Command.READ_ID, IdCode.TRANSCEIVER_ID
        )
        if len(payload) != 1:
            raise InvalidResponse("Expected a one-byte transceiver ID", payload)
        return f"{self.capabilities.name} (CI-V 0x{payload[0]:02X})"

    # ─── FREQUENCY / MODE ──────────────────────────────────────────────

    def get_frequency(self, target: Target | None = None) -> int:
        with self.targeting(target):
            payload = self._read(civ.build_read_frequency(self.address), Command.READ_FREQUENCY)
            return decode_frequency(payload)

    def set_frequency(self, hz: int, target: Target | None = None) -> None:
        with self.targeting(target):
            self._set(civ.build_set_frequency(self.address, hz))

    def get_mode(self, target: Target | None = None) -> Mode:
        with self.targeting(target):
            payload = self._read(civ.build_read_mode(self.address), Command.READ_MODE)
            return civ.decode_mode(payload)

    def set_mode(self, mode: Mode, target: Target | None = None) -> None:
        request = civ.build_set_mode(
            self.address, mode, with_filter=self.capabilities.requires_mode_filter
        )
        with self.targeting(target):
            self._set(request)

    def get_if_filter(self, target: Target | None = None) -> IfFilter:
        with self.targeting(target):
            payload = self._read(civ.build_read_mode(self.address), Command.READ_MODE)
        if len(payload) != 2:
            raise InvalidResponse("Mode reply carries no IF filter", payload)
        try:
            return IfFilter(payload[1])
        except ValueError:
            raise InvalidResponse(f"Unknown IF filter 0x{payload[1]:02X}", payload) from None

    def set_if_filter(self, slot: IfFilter, target: Target | None = None) -> None:
        # The filter only travels with the mode, so the mode is read back first
        with self.targeting(target):
            payload = self._read(civ.build_read_mode(self.address), Command.READ_MODE)
            mode = civ.decode_mode(payload)
            self._set(civ.build_set_mode(self.address, mode, filter_code=int(slot)))

    # ─── TRANSMIT ──────────────────────────────────────────────────────

    def get_ptt(self) -> bool:
        return self._read_flag(civ.build_read_ptt(self.address), Command.PTT, PttCode.TRANSMIT)

    def set_ptt(self, transmit: bool) -> None:
        self._set(civ.build_set_ptt(self.address, transmit))

    def get_split(self) -> bool:
        return self._read_flag(civ.build_read_split(self.address), Command.SPLIT)

    def set_split(self, enabled: bool) -> None:
        self._set(civ.build_set_split(self.address, enabled))

    def get_power(self) -> int:
        payload = self._read(
            civ.build_read_power(self.address), Command.LEVEL, LevelCode.RF_POWER
        )
        return round(decode_level(payload) * self.capabilities.max_power / LEVEL_MAX)

    def set_power(self, watts: int) -> None:
        level = round(watts * LEVEL_MAX / self.capabilities.max_power)
        self._set(civ.build_set_power(self.address, level))

    # ─── RIT / XIT ─────────────────────────────────────────────────────
    # RIT and XIT share one offset register (21 00).

    def _read_offset(self) -> int:
        payload = self._read(civ.build_read_rit_offset(self.address), Command.RIT, RitCode.OFFSET)
        return decode_offset(payload)

    def _read_state(self, switch: RitCode) -> RitXitState:
        with self.session.lock:
            enabled = self._read_flag(civ.build_read_switch(self.address, switch), Command.RIT, switch)
            return RitXitState(enabled=enabled, offset=self._read_offset())

    def _write_state(self, switch: RitCode, state: RitXitState) -> None:
        with self.session.lock:
            self._set(civ.build_set_rit_offset(self.address, state.offset))
            self._set(civ.build_set_switch(self.address, switch, state.enabled))

    def get_rit(self) -> RitXitState:
        return self._read_state(RitCode.RIT_ON)

    def set_rit(self, state: RitXitState) -> None:
        self._write_state(RitCode.RIT_ON, state)

    def get_xit(self) -> RitXitState:
        return self._read_state(RitCode.XIT_ON)

    def set_xit(self, state: RitXitState) -> None:
        self._write_state(RitCode.XIT_ON, state)

    def adjust_rit(self, steps: int) -> None:
        with self.session.lock:
            offset = self._read_offset() + steps * self.capabilities.rit_step
            limit = self.capabilities.rit_max_offset
            if abs(offset) > limit:
                raise InvalidParameter(
                    f"RIT offset {offset:+d} Hz would exceed +/-{limit} Hz"
                )
            self._set(civ.build_set_rit_offset(self.address, offset))

    def clear_rit(self) -> None:
        self._set(civ.build_set_rit_offset(self.address, 0))

    # ─── METERS ────────────────────────────────────────────────────────

    def get_signal_strength(self) -> SignalStrength:
        payload = self._read(civ.build_read_s_meter(self.address), Command.METER, MeterCode.S_METER)
        return ICOM_S_METER.convert(decode_level(payload))

    # ─── EXCHANGE / EQUALIZE ───────────────────────────────────────────

    def exchange(self) -> None:
        self._set(civ.build_select(self.address, VfoCode.EXCHANGE))

    def equalize(self) -> None:
        code = (
            VfoCode.EQUALIZE_AB
            if self.capabilities.topology is Topology.SIMPLE
            else VfoCode.EQUALIZE_BANDS
        )
        self._set(civ.build_select(self.address, code))

    # ─── RECEIVER DSP ──────────────────────────────────────────────────

    def get_agc(self) -> AgcSpeed:
        request = civ.build_read_function(self.address, FunctionCode.AGC)
        payload = self._read(request, Command.FUNCTION, FunctionCode.AGC)
        speed = civ.CODE_AGC.get(payload[0]) if len(payload) == 1 else None
        if speed is None or speed not in self.capabilities.agc_speeds:
            raise InvalidResponse("Unknown AGC code", payload)
        return speed

    def set_agc(self, speed: AgcSpeed) -> None:
        code = civ.AGC_CODES[speed]
        self._set(civ.build_set_function(self.address, FunctionCode.AGC, code))

    def _get_noise(self, function: FunctionCode, level: LevelCode, max_level: int) -> NoiseControl:
        with self.session.lock:
            enabled = self._read_flag(
                civ.build_read_function(self.address, function), Command.FUNCTION, function
            )
            value = None
            if max_level:
                payload = self._read(civ.build_read_level(self.address, level), Command.LEVEL, level)
                value = decode_level(payload)
            return NoiseControl(enabled=enabled, level=value)

    def _set_noise(self, function: FunctionCode, level: LevelCode, setting: NoiseControl) -> None:
        with self.session.lock:
            self._set(civ.build_set_function(self.address, function, int(setting.enabled)))
            if setting.level is not None:
                self._set(civ.build_set_level(self.address, level, setting.level))

    def get_noise_blanker(self) -> NoiseControl:
        return self._get_noise(
            FunctionCode.NOISE_BLANKER, LevelCode.NB_LEVEL, self.capabilities.nb_level_max
        )

    def set_noise_blanker(self, setting: NoiseControl) -> None:
        self._set_noise(FunctionCode.NOISE_BLANKER, LevelCode.NB_LEVEL, setting)

    def get_noise_reduction(self) -> NoiseControl:
        return self._get_noise(
            FunctionCode.NOISE_REDUCTION, LevelCode.NR_LEVEL, self.capabilities.nr_level_max
        )

    def set_noise_reduction(self, setting: NoiseControl) -> None:
        self._set_noise(FunctionCode.NOISE_REDUCTION, LevelCode.NR_LEVEL, setting)

    # ─── MEMORY ────────────────────────────────────────────────────────
    # Memory writes go through the VFO: tune it, then 09 stores it into the
    # selected channel. Reads enter memory mode and always return to VFO mode.

    def get_memory_channel(self, number: int) -> MemoryChannel:
        with self.session.lock:
            self._set(civ.build_select_memory(self.address, number))
            self._set(civ.build_memory_mode(self.address))
            try:
                payload = self._read(
                    civ.build_read_frequency(self.address), Command.READ_FREQUENCY
                )
                if payload == b"\xFF":
                    raise CommandFailed(f"Memory channel {number} is empty", payload)
                frequency = decode_frequency(payload)
                payload = self._read(civ.build_read_mode(self.address), Command.READ_MODE)
                mode = civ.decode_mode(payload)
            finally:
                self._set(civ.build_vfo_mode(self.address))
                self.addressing.reset()
            return MemoryChannel(number=number, frequency=frequency, mode=mode)

    def set_memory_channel(self, channel: MemoryChannel) -> None:
        with self.session.lock:
            self._set(civ.build_vfo_mode(self.address))
            self._set(civ.build_set_frequency(self.address, channel.frequency))
            self._set(
                civ.build_set_mode(
                    self.address,
                    channel.mode,
                    with_filter=self.capabilities.requires_mode_filter,
                )
            )
            self._set(civ.build_select_memory(self.address, channel.number))
            self._set(civ.build_memory_write(self.address))
            logger.info("Stored %s", channel)

    def clear_memory_channel(self, number: int) -> None:
        with self.session.lock:
            self._set(civ.build_select_memory(self.address, number))
            self._set(civ.build_memory_clear(self.address))
