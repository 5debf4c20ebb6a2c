"""Per-vendor tables for the shared ASCII protocol.

Kenwood, Elecraft and Yaesu use the same two-letter mnemonics with
different code tables and field layouts; ``MD3;`` is CW everywhere but
``MD6;`` is RTTY on a Kenwood and DATA on an Elecraft. A :class:`Dialect`
collects everything that differs so a single engine can drive all three.

Commands are stored as ``(mnemonic, parameter)`` pairs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import CommandFailed, InvalidResponse, RigError, UnsupportedOperation
from ..models.capabilities import Family
from ..models.mode import Mode
from ..models.receiver import AgcSpeed
from ..models.tuning import MeterCalibration
from ..models.vfo import VFO
from .ascii import StatusLayout

CommandPair = tuple[str, str]


class RitStyle(str, Enum):
    """How a RIT offset is written."""

    ABSOLUTE = "absolute"  # RC; then RU/RD with a fixed-width amount
    STEP = "step"  # bare RU; / RD; move one tuning step


# IF reply layout shared by Kenwood and Elecraft (TS-480 style, 38 chars):
#   IF fffffffffff _____ +oooo r x ccc t m v s p ...
KENWOOD_STATUS = StatusLayout(
    frequency=(2, 13),
    rit_offset=(18, 23),
    rit=23,
    xit=24,
    transmit=28,
    mode=29,
    vfo=30,
    split=32,
)

# FT-991A style: IF ccc fffffffff +oooo r x m ... (no A/B field)
YAESU_STATUS = StatusLayout(
    frequency=(5, 14),
    rit_offset=(14, 19),
    rit=19,
    xit=20,
    mode=21,
)

DEFAULT_ERROR_TOKENS: dict[bytes, type[RigError]] = {
    b"?;": CommandFailed,
    b"E;": InvalidResponse,
    b"O;": InvalidResponse,
}


@dataclass(frozen=True)
class Dialect:
    """Vendor-specific configuration of the ASCII engine."""

    name: str
    modes: dict[Mode, str]
    status: StatusLayout
    frequency_digits: int = 11
    mode_mnemonic: str = "MD"
    select_vfo: dict[VFO, tuple[CommandPair, ...]] = field(default_factory=dict)
    vfo_query: str | None = None  # None: read the IF VFO field
    split_on: tuple[CommandPair, ...] = (("FT", "1"),)
    split_off: tuple[CommandPair, ...] = (("FT", "0"),)
    split_query: str | None = None  # None: read the IF split field
    ptt_on: CommandPair = ("TX", "1")
    ptt_off: CommandPair = ("TX", "0")
    ptt_query: str | None = None  # None: read the IF transmit field
    rit_style: RitStyle = RitStyle.ABSOLUTE
    rit_digits: int = 5
    power_digits: int = 3
    s_meter_query: str = "SM0"
    s_meter_digits: int = 4
    meter: MeterCalibration = MeterCalibration(s9=15, s9_plus_60=30)
    exchange: CommandPair | None = None
    equalize: CommandPair | None = None
    agc_mnemonic: str | None = None
    agc_codes: dict[AgcSpeed, str] = field(default_factory=dict)
    agc_aliases: dict[str, AgcSpeed] = field(default_factory=dict)
    nb_mnemonic: str | None = "NB"
    nr_mnemonic: str | None = "NR"
    nr_level_mnemonic: str | None = None
    nr_level_digits: int = 2
    error_tokens: dict[bytes, type[RigError]] = field(
        default_factory=lambda: dict(DEFAULT_ERROR_TOKENS)
    )

    def __repr__(self) -> str:
        return f"Dialect({self.name!r})"

    def mode_code(self, mode: Mode) -> str:
        try:
            return self.modes[mode]
        except KeyError:
            raise UnsupportedOperation(f"{self.name} has no code for mode {mode}") from None

    def decode_mode(self, code: str) -> Mode:
        for mode, value in self.modes.items():
            if value == code:
                return mode
        raise InvalidResponse(
            f"Unknown {self.name} mode code {code!r}", code.encode("ascii", "replace")
        )

    def agc_code(self, speed: AgcSpeed) -> str:
        try:
            return self.agc_codes[speed]
        except KeyError:
            raise UnsupportedOperation(f"{self.name} has no code for AGC {speed.value}") from None

    def decode_agc(self, code: str) -> AgcSpeed:
        for speed, value in self.agc_codes.items():
            if value == code:
                return speed
        if code in self.agc_aliases:
            return self.agc_aliases[code]
        raise InvalidResponse(
            f"Unknown {self.name} AGC code {code!r}", code.encode("ascii", "replace")
        )


KENWOOD = Dialect(
    name="Kenwood",
    modes={
        Mode.LSB: "1",
        Mode.USB: "2",
        Mode.CW: "3",
        Mode.FM: "4",
        Mode.AM: "5",
        Mode.RTTY: "6",
        Mode.CW_R: "7",
        Mode.RTTY_R: "9",
    },
    status=KENWOOD_STATUS,
    select_vfo={
        VFO.A: (("FR", "0"),),
        VFO.B: (("FR", "1"),),
    },
    meter=MeterCalibration(s9=15, s9_plus_60=30),
    nr_level_mnemonic="RL",
)

ELECRAFT = Dialect(
    name="Elecraft",
    modes={
        Mode.LSB: "1",
        Mode.USB: "2",
        Mode.CW: "3",
        Mode.FM: "4",
        Mode.AM: "5",
        Mode.DATA_USB: "6",
        Mode.CW_R: "7",
        Mode.RTTY: "8",
        Mode.DATA_LSB: "9",
    },
    status=KENWOOD_STATUS,
    select_vfo={
        VFO.A: (("FR", "0"), ("FT", "0")),
        VFO.B: (("FR", "1"), ("FT", "1")),
    },
    split_on=(("FR", "0"), ("FT", "1")),
    split_off=(("FR", "0"), ("FT", "0")),
    ptt_on=("TX", ""),
    ptt_off=("RX", ""),
    rit_style=RitStyle.STEP,
    meter=MeterCalibration(s9=54, s9_plus_60=114),
    agc_mnemonic="GT",
    agc_codes={AgcSpeed.FAST: "002", AgcSpeed.SLOW: "004"},
    nr_mnemonic=None,
    # Elecraft answers "?;" while transmitting; that is Busy, configured
    # through the radio's quirk profile rather than here.
)

YAESU = Dialect(
    name="Yaesu",
    modes={
        Mode.LSB: "1",
        Mode.USB: "2",
        Mode.CW: "3",
        Mode.FM: "4",
        Mode.AM: "5",
        Mode.RTTY: "6",
        Mode.CW_R: "7",
        Mode.DATA_LSB: "8",
        Mode.RTTY_R: "9",
        Mode.DATA_FM: "A",
        Mode.FM_N: "B",
        Mode.DATA_USB: "C",
    },
    status=YAESU_STATUS,
    frequency_digits=9,
    mode_mnemonic="MD0",
    select_vfo={
        VFO.A: (("VS", "0"),),
        VFO.B: (("VS", "1"),),
    },
    vfo_query="VS",
    split_query="FT",
    ptt_query="TX",
    rit_digits=4,
    s_meter_query="RM5",
    s_meter_digits=3,
    meter=MeterCalibration(s9=117, s9_plus_60=237),
    exchange=("SV", ""),
    equalize=("AB", ""),
    agc_mnemonic="GT0",
    agc_codes={
        AgcSpeed.OFF: "0",
        AgcSpeed.FAST: "1",
        AgcSpeed.MEDIUM: "2",
        AgcSpeed.SLOW: "3",
        AgcSpeed.AUTO: "4",
    },
    # AUTO reads back as the speed it settled on
    agc_aliases={"5": AgcSpeed.AUTO, "6": AgcSpeed.AUTO},
    nb_mnemonic="NB0",
    nr_mnemonic="NR0",
    nr_level_mnemonic="RL0",
)

DIALECTS: dict[Family, Dialect] = {
    Family.KENWOOD: KENWOOD,
    Family.ELECRAFT: ELECRAFT,
    Family.YAESU: YAESU,
}
