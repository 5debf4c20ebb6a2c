"""Hamlib rigctld-compatible TCP front end.

Lets loggers and digital-mode programs that speak the rigctld network
protocol (WSJT-X, fldigi, ...) drive a :class:`RigController`. Each line
is one command, either a single character (``f``, ``F 14074000``) or a
backslash long name (``\\get_freq``). A leading ``+`` selects the
extended response format::

    +f
    get_freq:
    Frequency: 14074000
    RPRT 0

Set commands answer ``RPRT 0`` and failures answer ``RPRT -n`` with a
Hamlib error number. Clients are told the server does not take VFO
arguments (``CHKVFO 0``); each connection instead keeps its own receive
VFO, changed with ``V``.
"""

from __future__ import annotations

import argparse
import logging
import socketserver
import sys
from dataclasses import dataclass
from enum import IntEnum

from .controller import RigController
from .errors import (
    Busy,
    CommandFailed,
    InvalidParameter,
    InvalidResponse,
    NotConnected,
    RigError,
    Timeout,
    TransportError,
    UnsupportedOperation,
)
from .models import radios
from .models.capabilities import RigCapabilities, Topology
from .models.mode import Mode
from .models.receiver import AgcSpeed, NoiseControl
from .models.tuning import RitXitState
from .models.vfo import VFO, Band, Target
from .transport.serial_connection import SerialConfig, SerialConnection

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4532


class ReturnCode(IntEnum):
    """Hamlib status numbers, as sent in ``RPRT`` lines."""

    OK = 0
    EINVAL = -1
    ENIMPL = -4
    ETIMEOUT = -5
    EIO = -6
    EINTERNAL = -7
    EPROTO = -8
    ERJCTED = -9
    ENAVAIL = -11


_ERROR_CODES: dict[type[Exception], ReturnCode] = {
    InvalidParameter: ReturnCode.EINVAL,
    UnsupportedOperation: ReturnCode.ENAVAIL,
    Timeout: ReturnCode.ETIMEOUT,
    NotConnected: ReturnCode.EIO,
    TransportError: ReturnCode.EIO,
    InvalidResponse: ReturnCode.EPROTO,
    CommandFailed: ReturnCode.ERJCTED,
    Busy: ReturnCode.ERJCTED,
    RigError: ReturnCode.EINTERNAL,
    ValueError: ReturnCode.EINVAL,
}


def return_code(exc: Exception) -> ReturnCode:
    """Hamlib status for an exception raised while running a command."""
    for cls in type(exc).__mro__:
        if cls in _ERROR_CODES:
            return _ERROR_CODES[cls]
    return ReturnCode.EINTERNAL


# Hamlib mode names and the passband reported for each.
HAMLIB_MODES: dict[Mode, tuple[str, int]] = {
    Mode.LSB: ("LSB", 2400),
    Mode.USB: ("USB", 2400),
    Mode.CW: ("CW", 500),
    Mode.CW_R: ("CWR", 500),
    Mode.AM: ("AM", 6000),
    Mode.FM: ("FM", 15000),
    Mode.FM_N: ("FMN", 10000),
    Mode.WFM: ("WFM", 150000),
    Mode.RTTY: ("RTTY", 500),
    Mode.RTTY_R: ("RTTYR", 500),
    Mode.DATA_USB: ("PKTUSB", 2400),
    Mode.DATA_LSB: ("PKTLSB", 2400),
    Mode.DATA_FM: ("PKTFM", 15000),
}
_MODE_NAMES = {name: mode for mode, (name, _) in HAMLIB_MODES.items()}

# RIG_MODE_* bits used in dump_state.
_MODE_BITS = {
    Mode.AM: 1 << 0,
    Mode.CW: 1 << 1,
    Mode.USB: 1 << 2,
    Mode.LSB: 1 << 3,
    Mode.RTTY: 1 << 4,
    Mode.FM: 1 << 5,
    Mode.WFM: 1 << 6,
    Mode.CW_R: 1 << 7,
    Mode.RTTY_R: 1 << 8,
    Mode.DATA_LSB: 1 << 10,
    Mode.DATA_USB: 1 << 11,
    Mode.DATA_FM: 1 << 12,
    Mode.FM_N: 1 << 21,
}

# Hamlib's AGC level numbering; 1 (superfast) and 4 (user) are not offered.
HAMLIB_AGC = {
    AgcSpeed.OFF: 0,
    AgcSpeed.FAST: 2,
    AgcSpeed.SLOW: 3,
    AgcSpeed.MEDIUM: 5,
    AgcSpeed.AUTO: 6,
}
_AGC_NUMBERS = {number: speed for speed, number in HAMLIB_AGC.items()}

_FUNC_NB = 1 << 1
_FUNC_NR = 1 << 9
_LEVEL_RFPOWER = 1 << 12
_LEVEL_AGC = 1 << 17
_LEVEL_STRENGTH = 1 << 30


def parse_mode(name: str) -> Mode:
    """Accept Hamlib names (``PKTUSB``) as well as our own (``DATA-USB``)."""
    key = name.strip().upper()
    if key in _MODE_NAMES:
        return _MODE_NAMES[key]
    return Mode.parse(name)


def parse_vfo(name: str) -> Target | None:
    """``VFOA``, ``Main``, ``Sub`` ...; ``VFO`` and ``currVFO`` mean current."""
    if name.strip().lower() in ("vfo", "currvfo"):
        return None
    return Target.parse(name)


def vfo_name(target: Target) -> str:
    if target.vfo is not None:
        return f"VFO{target.vfo.value}"
    if target.band is not None:
        return target.band.value.capitalize()
    return "currVFO"


def _flag(text: str) -> bool:
    return int(text) != 0


@dataclass(frozen=True)
class Command:
    """One rigctld command: its names, argument names and reply labels."""

    short: str | None
    long: str
    method: str
    args: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()


COMMANDS = (
    Command("f", "get_freq", "get_freq", labels=("Frequency",)),
    Command("F", "set_freq", "set_freq", ("Frequency",)),
    Command("m", "get_mode", "get_mode", labels=("Mode", "Passband")),
    Command("M", "set_mode", "set_mode", ("Mode", "Passband")),
    Command("v", "get_vfo", "get_vfo", labels=("VFO",)),
    Command("V", "set_vfo", "set_vfo", ("VFO",)),
    Command("t", "get_ptt", "get_ptt", labels=("PTT",)),
    Command("T", "set_ptt", "set_ptt", ("PTT",)),
    Command("s", "get_split_vfo", "get_split_vfo", labels=("Split", "TX VFO")),
    Command("S", "set_split_vfo", "set_split_vfo", ("Split", "TX VFO")),
    Command("i", "get_split_freq", "get_split_freq", labels=("TX Frequency",)),
    Command("I", "set_split_freq", "set_split_freq", ("TX Frequency",)),
    Command("x", "get_split_mode", "get_split_mode", labels=("TX Mode", "TX Passband")),
    Command("X", "set_split_mode", "set_split_mode", ("TX Mode", "TX Passband")),
    Command("j", "get_rit", "get_rit", labels=("RIT",)),
    Command("J", "set_rit", "set_rit", ("RIT",)),
    Command("z", "get_xit", "get_xit", labels=("XIT",)),
    Command("Z", "set_xit", "set_xit", ("XIT",)),
    Command("l", "get_level", "get_level", ("Level",), ("Level Value",)),
    Command("L", "set_level", "set_level", ("Level", "Level Value")),
    Command("u", "get_func", "get_func", ("Func",), ("Func Status",)),
    Command("U", "set_func", "set_func", ("Func", "Func Status")),
    Command("G", "vfo_op", "vfo_op", ("Mem/VFO Op",)),
    Command("2", "power2mW", "power2mw", ("Power [0.0..1.0]", "Frequency", "Mode"), ("Power mW",)),
    Command("4", "mW2power", "mw2power", ("Power mW", "Frequency", "Mode"), ("Power [0.0..1.0]",)),
    Command("_", "get_info", "get_info", labels=("Info",)),
    Command("1", "dump_caps", "dump_caps"),
    Command(None, "dump_state", "dump_state"),
    Command(None, "chk_vfo", "chk_vfo"),
    Command("q", "quit", "quit"),
    Command("Q", "quit", "quit"),
)
SHORT_COMMANDS = {c.short: c for c in COMMANDS if c.short}
LONG_COMMANDS = {c.long: c for c in COMMANDS}


class RigctldSession:
    """Command interpreter for one client connection.

    ``handle`` takes one line and returns the reply text, or ``None``
    when the client asked to quit.
    """

    def __init__(self, controller: RigController) -> None:
        self.rig = controller
        if controller.capabilities.topology is Topology.DUAL_RECEIVER:
            self.rx = Target(band=Band.MAIN)
        else:
            self.rx = Target(vfo=VFO.A)

    @property
    def tx(self) -> Target:
        if self.rx.vfo is not None:
            return Target(band=self.rx.band, vfo=self.rx.vfo.other)
        return Target(band=self.rx.band.other)

    def handle(self, line: str) -> str | None:
        line = line.strip()
        extended = line.startswith("+")
        if extended:
            line = line[1:].lstrip()
        if not line:
            return ""

        if line.startswith("\\"):
            name, *args = line[1:].split() or [""]
            command = LONG_COMMANDS.get(name)
        else:
            name, args = line[0], line[1:].split()
            command = SHORT_COMMANDS.get(name)
        if command is None:
            logger.warning("Unknown rigctld command %r", name)
            return _report(ReturnCode.EPROTO) + "\n"
        if command.method == "quit":
            return None

        # Passband and TX VFO arguments are optional; surplus ones are ignored.
        required = len(command.args)
        if command.method in ("set_mode", "set_split_mode", "set_split_vfo"):
            required = 1
        if len(args) < required:
            logger.warning("%s needs %s", command.long, ", ".join(command.args))
            return self._format(command, args, extended, code=ReturnCode.EINVAL)

        try:
            values = getattr(self, command.method)(*args[:len(command.args)])
        except (RigError, ValueError) as exc:
            logger.warning("%s failed: %s", command.long, exc)
            return self._format(command, args, extended, code=return_code(exc))
        return self._format(command, args, extended, values)

    def _format(self, command, args, extended, values=(), code=ReturnCode.OK) -> str:
        if extended:
            lines = [f"{command.long}: {' '.join(args)}".rstrip()]
            if command.labels:
                lines += [f"{label}: {value}" for label, value in zip(command.labels, values)]
            else:
                lines += [str(value) for value in values]
            lines.append(_report(code))
        elif code is not ReturnCode.OK or not values:
            lines = [_report(code)]
        else:
            lines = [str(value) for value in values]
        return "\n".join(lines) + "\n"

    # ─── VFO ───────────────────────────────────────────────────────────

    def get_freq(self):
        return (self.rig.frequency(self.rx, use_cache=False),)

    def set_freq(self, hz):
        self.rig.set_frequency(int(float(hz)), self.rx)
        return ()

    def get_mode(self):
        return HAMLIB_MODES[self.rig.mode(self.rx, use_cache=False)]

    def set_mode(self, name, passband=None):
        # Passband widths map onto no portable filter choice; only the mode is set.
        self.rig.set_mode(parse_mode(name), self.rx)
        return ()

    def get_vfo(self):
        return (vfo_name(self.rx),)

    def set_vfo(self, name):
        target = parse_vfo(name)
        if target is None:
            return ()
        if target.band and target.vfo:
            self.rig.select_band_vfo(target.band, target.vfo)
        elif target.band:
            self.rig.select_band(target.band)
        else:
            self.rig.select_vfo(target.vfo)
        self.rx = target
        return ()

    def vfo_op(self, op):
        key = op.upper()
        if key in ("XCHG", "TOGGLE"):
            self.rig.exchange()
        elif key == "CPY":
            self.rig.equalize()
        else:
            raise UnsupportedOperation(f"VFO operation {op} is not supported")
        return ()

    # ─── TRANSMIT ──────────────────────────────────────────────────────

    def get_ptt(self):
        return (int(self.rig.ptt()),)

    def set_ptt(self, value):
        self.rig.set_ptt(_flag(value))
        return ()

    def get_split_vfo(self):
        return int(self.rig.split(use_cache=False)), vfo_name(self.tx)

    def set_split_vfo(self, value, tx_vfo=None):
        self.rig.set_split(_flag(value))
        return ()

    def get_split_freq(self):
        return (self.rig.frequency(self.tx, use_cache=False),)

    def set_split_freq(self, hz):
        self.rig.set_frequency(int(float(hz)), self.tx)
        return ()

    def get_split_mode(self):
        return HAMLIB_MODES[self.rig.mode(self.tx, use_cache=False)]

    def set_split_mode(self, name, passband=None):
        self.rig.set_mode(parse_mode(name), self.tx)
        return ()

    # ─── RIT / XIT ─────────────────────────────────────────────────────

    def get_rit(self):
        state = self.rig.rit(use_cache=False)
        return (state.offset if state.enabled else 0,)

    def set_rit(self, offset):
        offset = int(offset)
        self.rig.set_rit(RitXitState(enabled=offset != 0, offset=offset))
        return ()

    def get_xit(self):
        state = self.rig.xit(use_cache=False)
        return (state.offset if state.enabled else 0,)

    def set_xit(self, offset):
        offset = int(offset)
        self.rig.set_xit(RitXitState(enabled=offset != 0, offset=offset))
        return ()

    # ─── LEVELS AND FUNCTIONS ──────────────────────────────────────────

    def get_level(self, name):
        level = name.upper()
        if level == "AGC":
            return (HAMLIB_AGC[self.rig.agc(use_cache=False)],)
        if level == "RFPOWER":
            max_power = self.rig.capabilities.max_power
            return (f"{self.rig.power(use_cache=False) / max_power:.6f}",)
        if level == "STRENGTH":
            # dB relative to S9
            return (self.rig.signal_strength().decibels - 54,)
        raise UnsupportedOperation(f"Level {name} is not supported")

    def set_level(self, name, value):
        level = name.upper()
        if level == "AGC":
            number = int(float(value))
            if number not in _AGC_NUMBERS:
                raise InvalidParameter(f"Unknown AGC setting {value}")
            self.rig.set_agc(_AGC_NUMBERS[number])
        elif level == "RFPOWER":
            fraction = float(value)
            if not 0.0 <= fraction <= 1.0:
                raise InvalidParameter(f"RFPOWER must be 0.0-1.0, got {value}")
            self.rig.set_power(round(fraction * self.rig.capabilities.max_power))
        else:
            raise UnsupportedOperation(f"Level {name} cannot be set")
        return ()

    def _noise(self, name):
        func = name.upper()
        if func == "NB":
            return self.rig.noise_blanker, self.rig.set_noise_blanker
        if func == "NR":
            return self.rig.noise_reduction, self.rig.set_noise_reduction
        raise UnsupportedOperation(f"Function {name} is not supported")

    def get_func(self, name):
        read, _ = self._noise(name)
        return (int(read(use_cache=False).enabled),)

    def set_func(self, name, value):
        _, write = self._noise(name)
        write(NoiseControl(enabled=_flag(value)))
        return ()

    # ─── POWER CONVERSION ──────────────────────────────────────────────

    def power2mw(self, fraction, frequency, mode):
        return (round(float(fraction) * self.rig.capabilities.max_power * 1000),)

    def mw2power(self, milliwatts, frequency, mode):
        fraction = int(milliwatts) / 1000 / self.rig.capabilities.max_power
        return (f"{min(max(fraction, 0.0), 1.0):.6f}",)

    # ─── INFORMATION ───────────────────────────────────────────────────

    def get_info(self):
        return (self.rig.capabilities.name,)

    def chk_vfo(self):
        return ("CHKVFO 0",)

    def dump_caps(self):
        caps = self.rig.capabilities
        lo, hi = caps.frequency_range
        lines = [
            f"Caps dump for model: {caps.name}",
            f"Model name: {caps.name}",
            f"Mfg name: {caps.family.value}",
            "Rig type: Transceiver",
            f"PTT type: {'RIG' if caps.has_ptt else 'None'}",
            f"Frequency range: {lo}-{hi} Hz",
            "Mode list: " + " ".join(
                HAMLIB_MODES[m][0] for m in Mode if m in caps.modes
            ),
            f"Max power: {caps.max_power} W",
            f"Split: {'Y' if caps.has_split else 'N'}",
            f"Max RIT: {caps.rit_max_offset if caps.has_rit else 0} Hz",
            f"Max XIT: {caps.rit_max_offset if caps.has_xit else 0} Hz",
            f"Get functions: {_func_names(caps)}",
            f"Get level: {_level_names(caps, read=True)}",
            f"Set level: {_level_names(caps, read=False)}",
        ]
        return tuple(lines)

    def dump_state(self):
        return tuple(dump_state(self.rig.capabilities))


def dump_state(caps: RigCapabilities) -> list[str]:
    """Protocol version 0 state dump, the first thing Hamlib's NET rig reads."""
    lo, hi = caps.frequency_range
    modes = 0
    for mode in caps.modes:
        modes |= _MODE_BITS[mode]
    vfos = 0x3
    if caps.topology is not Topology.SIMPLE:
        vfos |= (1 << 25) | (1 << 26)
    funcs = (_FUNC_NB if caps.has_noise_blanker else 0) | (
        _FUNC_NR if caps.has_noise_reduction else 0
    )
    set_levels = (_LEVEL_RFPOWER if caps.has_power_control else 0) | (
        _LEVEL_AGC if caps.has_agc else 0
    )
    get_levels = set_levels | (_LEVEL_STRENGTH if caps.has_signal_strength else 0)
    return [
        "0",  # protocol version
        "2",  # NET rigctl model
        "2",  # ITU region
        f"{lo} {hi} {modes:#x} -1 -1 {vfos:#x} 0x1",
        "0 0 0 0 0 0 0",
        f"{lo} {hi} {modes:#x} 1000 {caps.max_power * 1000} {vfos:#x} 0x1",
        "0 0 0 0 0 0 0",
        f"{modes:#x} 1",  # tuning steps
        "0 0",
        "0 0",  # filters
        str(caps.rit_max_offset if caps.has_rit else 0),
        str(caps.rit_max_offset if caps.has_xit else 0),
        "0",  # max IF shift
        "0",  # announces
        "0",  # preamp
        "0",  # attenuator
        f"{funcs:#x}",
        f"{funcs:#x}",
        f"{get_levels:#x}",
        f"{set_levels:#x}",
        "0",
        "0",
    ]


def _func_names(caps: RigCapabilities) -> str:
    names = []
    if caps.has_noise_blanker:
        names.append("NB")
    if caps.has_noise_reduction:
        names.append("NR")
    return " ".join(names)


def _level_names(caps: RigCapabilities, read: bool) -> str:
    names = []
    if caps.has_agc:
        names.append("AGC")
    if caps.has_power_control:
        names.append("RFPOWER")
    if read and caps.has_signal_strength:
        names.append("STRENGTH")
    return " ".join(names)


def _report(code: ReturnCode) -> str:
    return f"RPRT {int(code)}"


# ─── NETWORK ─────────────────────────────────────────────────────────


class RigctldRequestHandler(socketserver.StreamRequestHandler):
    """Reads newline-terminated commands until the client quits or hangs up."""

    def handle(self) -> None:
        host, port = self.client_address[:2]
        logger.info("rigctld client connected from %s:%s", host, port)
        session = RigctldSession(self.server.controller)
        for raw in self.rfile:
            reply = session.handle(raw.decode("ascii", errors="replace"))
            if reply is None:
                break
            self.wfile.write(reply.encode("ascii"))
        logger.info("rigctld client %s:%s closed", host, port)


class RigctldServer(socketserver.ThreadingTCPServer):
    """Threaded rigctld listener sharing one controller between clients."""

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, controller: RigController, address=("127.0.0.1", DEFAULT_PORT)):
        self.controller = controller
        super().__init__(address, RigctldRequestHandler)


# ─── ENTRY POINT ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rigcontrol-rigctld",
        description="Serve a radio over the Hamlib rigctld network protocol.",
    )
    parser.add_argument("-r", "--radio", required=True, help='model name, e.g. "IC-7300"')
    parser.add_argument("-p", "--port", required=True, help="serial device")
    parser.add_argument("-s", "--baudrate", type=int, help="override the model's baud rate")
    parser.add_argument(
        "-c", "--civ-address", type=lambda text: int(text, 0),
        help="override the Icom CI-V address (e.g. 0x94)",
    )
    parser.add_argument("-T", "--host", default="127.0.0.1", help="listen address")
    parser.add_argument("-t", "--listen-port", type=int, default=DEFAULT_PORT)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        caps = radios.lookup(args.radio)
    except RigError as exc:
        logger.error("%s", exc)
        return 2
    config = SerialConfig.for_rig(args.port, caps, baudrate=args.baudrate)
    controller = RigController(caps, SerialConnection(config), civ_address=args.civ_address)
    controller.connect()
    try:
        with RigctldServer(controller, (args.host, args.listen_port)) as server:
            logger.info("rigctld listening on %s:%d", args.host, args.listen_port)
            server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        controller.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(main())
