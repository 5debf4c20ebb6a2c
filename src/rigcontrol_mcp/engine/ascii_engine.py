"""ASCII engine for Kenwood, Elecraft and Yaesu radios.

One engine, parameterized by a :class:`~rigcontrol_mcp.protocol.dialects.Dialect`.
Queries are ``XX;`` answered by ``XX<value>;``. Whether a SET is answered
depends on the model's quirk profile:

- ``AckMode.ECHO``: the radio repeats the command as confirmation
- ``AckMode.NONE``: nothing comes back; success is assumed after sending

PTT commands are never answered, whatever the profile says.
"""

from __future__ import annotations

import logging

from ..errors import InvalidParameter, InvalidResponse, UnsupportedOperation
from ..models.capabilities import AckMode, PowerUnits, RigCapabilities
from ..models.mode import Mode
from ..models.receiver import AgcSpeed, NoiseControl
from ..models.tuning import RitXitState, SignalStrength
from ..models.vfo import VFO, Target
from ..protocol.ascii import (
    TERMINATOR,
    Status,
    build_command,
    digits,
    field,
    parse_flag,
    parse_int,
    parse_response,
    parse_status,
)
from ..protocol.dialects import DIALECTS, CommandPair, Dialect, RitStyle
from ..transport.base import Transport
from .addressing import Step
from .base import RigEngine

logger = logging.getLogger(__name__)


class AsciiEngine(RigEngine):
    """Protocol engine for mnemonic-based CAT dialects."""

    def __init__(
        self,
        capabilities: RigCapabilities,
        transport: Transport,
        dialect: Dialect | None = None,
    ) -> None:
        super().__init__(capabilities, transport, TERMINATOR)
        self.dialect = dialect or DIALECTS[capabilities.family]

    # ─── COMMAND EXCHANGE ──────────────────────────────────────────────

    def _check_error(self, raw: bytes) -> None:
        error = self.dialect.error_tokens.get(raw)
        if error is not None:
            raise error(f"{self.dialect.name} radio rejected the command", raw)

    def _answers(self, mnemonic: str):
        prefix = mnemonic.encode("ascii")
        return lambda raw: raw.startswith(prefix) or raw in self.dialect.error_tokens

    def _query(self, mnemonic: str) -> str:
        """Send ``mnemonic;`` and return the reply's parameter field."""
        raw = self.session.exchange(build_command(mnemonic), accept=self._answers(mnemonic))
        self._check_error(raw)
        return parse_response(raw, mnemonic)

    def _set(self, mnemonic: str, param: str = "") -> None:
        request = build_command(mnemonic, param)
        if self.capabilities.quirks.ack is not AckMode.ECHO:
            self.session.send(request)
            return
        raw = self.session.exchange(request, detect_echo=False)
        self._check_error(raw)
        if raw != request:
            raise InvalidResponse(f"Expected confirmation of {request!r}", raw)

    def _set_all(self, commands: tuple[CommandPair, ...]) -> None:
        with self.session.lock:
            for mnemonic, param in commands:
                self._set(mnemonic, param)

    def _status(self) -> Status:
        raw = self.session.exchange(build_command("IF"), accept=self._answers("IF"))
        self._check_error(raw)
        return parse_status(raw, self.dialect.status)

    # ─── LIFECYCLE / SELECTION ─────────────────────────────────────────

    def _handshake(self) -> None:
        # Auto-information off, so only requested replies arrive.
        self.session.send(build_command("AI", "0"))
        logger.info("%s session to %s", self.dialect.name, self.capabilities.name)

    def _select(self, step: Step) -> None:
        commands = self.dialect.select_vfo.get(step)
        if not commands:
            raise UnsupportedOperation(f"{self.dialect.name} cannot select {step}")
        self._set_all(commands)

    def identify(self) -> str:
        return f"{self.capabilities.name} (ID {self._query('ID')})"

    # ─── FREQUENCY / MODE ──────────────────────────────────────────────

    def _current_vfo(self) -> VFO:
        """Ask the radio which VFO is active.

        Yaesu status has no A/B field, so those radios answer a dedicated
        query; a radio with neither falls back to the latched selection.
        """
        if self.dialect.vfo_query is not None:
            code = field(self._query(self.dialect.vfo_query), 0, 1)
        else:
            code = self._status().vfo_code
        if code is None:
            return self.addressing.current.vfo or VFO.A
        return VFO.B if code == "1" else VFO.A

    def _vfo_for(self, target: Target | None) -> VFO:
        resolved = self.addressing.validate(target)
        if resolved is not None and resolved.vfo is not None:
            return resolved.vfo
        return self._current_vfo()

    @staticmethod
    def _frequency_mnemonic(vfo: VFO) -> str:
        return "FA" if vfo is VFO.A else "FB"

    def get_frequency(self, target: Target | None = None) -> int:
        with self.session.lock:
            if self.addressing.validate(target) is None:
                return self._status().frequency
            mnemonic = self._frequency_mnemonic(self._vfo_for(target))
            body = self._query(mnemonic)
            return parse_int(field(body, 0, self.dialect.frequency_digits))

    def set_frequency(self, hz: int, target: Target | None = None) -> None:
        with self.session.lock:
            mnemonic = self._frequency_mnemonic(self._vfo_for(target))
            self._set(mnemonic, digits(hz, self.dialect.frequency_digits))

    def get_mode(self, target: Target | None = None) -> Mode:
        with self.targeting(target):
            body = self._query(self.dialect.mode_mnemonic)
            return self.dialect.decode_mode(field(body, 0, 1))

    def set_mode(self, mode: Mode, target: Target | None = None) -> None:
        code = self.dialect.mode_code(mode)
        with self.targeting(target):
            self._set(self.dialect.mode_mnemonic, code)

    # ─── TRANSMIT ──────────────────────────────────────────────────────

    def get_ptt(self) -> bool:
        if self.dialect.ptt_query is None:
            transmit = self._status().transmit
            if transmit is None:
                raise UnsupportedOperation(f"{self.dialect.name} status has no TX field")
            return transmit
        return field(self._query(self.dialect.ptt_query), 0, 1) != "0"

    def set_ptt(self, transmit: bool) -> None:
        mnemonic, param = self.dialect.ptt_on if transmit else self.dialect.ptt_off
        self.session.send(build_command(mnemonic, param))

    def get_split(self) -> bool:
        if self.dialect.split_query is None:
            split = self._status().split
            if split is None:
                raise UnsupportedOperation(f"{self.dialect.name} status has no split field")
            return split
        return parse_flag(field(self._query(self.dialect.split_query), 0, 1))

    def set_split(self, enabled: bool) -> None:
        self._set_all(self.dialect.split_on if enabled else self.dialect.split_off)

    def get_power(self) -> int:
        value = parse_int(field(self._query("PC"), 0, self.dialect.power_digits))
        if self.capabilities.power_units is PowerUnits.PERCENT:
            return round(value * self.capabilities.max_power / 100)
        return value

    def set_power(self, watts: int) -> None:
        value = watts
        if self.capabilities.power_units is PowerUnits.PERCENT:
            value = round(watts * 100 / self.capabilities.max_power)
        self._set("PC", digits(value, self.dialect.power_digits))

    # ─── RIT / XIT ─────────────────────────────────────────────────────
    # Both read from the IF status; the offset register is shared.

    def get_rit(self) -> RitXitState:
        status = self._status()
        return RitXitState(enabled=status.rit, offset=status.rit_offset)

    def get_xit(self) -> RitXitState:
        status = self._status()
        return RitXitState(enabled=status.xit, offset=status.rit_offset)

    def _write_offset(self, offset: int) -> None:
        if self.dialect.rit_style is RitStyle.STEP and offset:
            raise UnsupportedOperation(
                f"{self.dialect.name} radios only step the RIT offset; "
                "use adjust_rit or clear it"
            )
        self._set("RC")
        if offset > 0:
            self._set("RU", digits(offset, self.dialect.rit_digits))
        elif offset < 0:
            self._set("RD", digits(-offset, self.dialect.rit_digits))

    def set_rit(self, state: RitXitState) -> None:
        with self.session.lock:
            self._write_offset(state.offset)
            self._set("RT", "1" if state.enabled else "0")

    def set_xit(self, state: RitXitState) -> None:
        with self.session.lock:
            self._write_offset(state.offset)
            self._set("XT", "1" if state.enabled else "0")

    def adjust_rit(self, steps: int) -> None:
        mnemonic = "RU" if steps > 0 else "RD"
        with self.session.lock:
            current = self._status().rit_offset
            offset = current + steps * self.capabilities.rit_step
            limit = self.capabilities.rit_max_offset
            if abs(offset) > limit:
                raise InvalidParameter(
                    f"RIT offset {offset:+d} Hz would exceed +/-{limit} Hz"
                )
            if self.dialect.rit_style is RitStyle.STEP:
                for _ in range(abs(steps)):
                    self._set(mnemonic)
            elif steps:
                amount = abs(steps) * self.capabilities.rit_step
                self._set(mnemonic, digits(amount, self.dialect.rit_digits))

    def clear_rit(self) -> None:
        self._set("RC")

    # ─── METERS ────────────────────────────────────────────────────────

    def get_signal_strength(self) -> SignalStrength:
        body = self._query(self.dialect.s_meter_query)
        raw = parse_int(field(body, 0, self.dialect.s_meter_digits))
        return self.dialect.meter.convert(raw)

    # ─── EXCHANGE / EQUALIZE ───────────────────────────────────────────

    def exchange(self) -> None:
        if self.dialect.exchange is None:
            raise UnsupportedOperation(f"{self.dialect.name} radios have no VFO swap command")
        self._set(*self.dialect.exchange)

    def equalize(self) -> None:
        if self.dialect.equalize is None:
            raise UnsupportedOperation(f"{self.dialect.name} radios have no VFO copy command")
        self._set(*self.dialect.equalize)

    # ─── RECEIVER DSP ──────────────────────────────────────────────────

    def _require(self, mnemonic: str | None, what: str) -> str:
        if mnemonic is None:
            raise UnsupportedOperation(f"{self.dialect.name} radios have no {what} command")
        return mnemonic

    def get_agc(self) -> AgcSpeed:
        mnemonic = self._require(self.dialect.agc_mnemonic, "AGC")
        width = len(next(iter(self.dialect.agc_codes.values())))
        return self.dialect.decode_agc(field(self._query(mnemonic), 0, width))

    def set_agc(self, speed: AgcSpeed) -> None:
        mnemonic = self._require(self.dialect.agc_mnemonic, "AGC")
        self._set(mnemonic, self.dialect.agc_code(speed))

    def _get_noise(self, mnemonic: str, level_mnemonic: str | None, max_level: int) -> NoiseControl:
        # NB1/NB2 and NR1/NR2 both read as "on"
        with self.session.lock:
            enabled = field(self._query(mnemonic), 0, 1) != "0"
            level = None
            if level_mnemonic is not None and max_level:
                body = self._query(level_mnemonic)
                level = parse_int(field(body, 0, self.dialect.nr_level_digits))
            return NoiseControl(enabled=enabled, level=level)

    def _set_noise(self, mnemonic: str, level_mnemonic: str | None, setting: NoiseControl) -> None:
        with self.session.lock:
            self._set(mnemonic, "1" if setting.enabled else "0")
            if setting.level is not None:
                level_mnemonic = self._require(level_mnemonic, "noise level")
                self._set(level_mnemonic, digits(setting.level, self.dialect.nr_level_digits))

    def get_noise_blanker(self) -> NoiseControl:
        mnemonic = self._require(self.dialect.nb_mnemonic, "noise blanker")
        return self._get_noise(mnemonic, None, 0)

    def set_noise_blanker(self, setting: NoiseControl) -> None:
        mnemonic = self._require(self.dialect.nb_mnemonic, "noise blanker")
        self._set_noise(mnemonic, None, setting)

    def get_noise_reduction(self) -> NoiseControl:
        mnemonic = self._require(self.dialect.nr_mnemonic, "noise reduction")
        return self._get_noise(
            mnemonic, self.dialect.nr_level_mnemonic, self.capabilities.nr_level_max
        )

    def set_noise_reduction(self, setting: NoiseControl) -> None:
        mnemonic = self._require(self.dialect.nr_mnemonic, "noise reduction")
        self._set_noise(mnemonic, self.dialect.nr_level_mnemonic, setting)
