"""Sample capability descriptors for commonly used radios.

These are configuration data only. Applications with other radios build
their own :class:`RigCapabilities` and pass it to the controller.
"""

from __future__ import annotations

from ..errors import InvalidParameter
from .capabilities import (
    AckMode,
    EchoMode,
    Family,
    PowerUnits,
    QuirkProfile,
    RigCapabilities,
    Topology,
)
from .mode import Mode
from .receiver import AgcSpeed

ICOM_HF_MODES = frozenset({
    Mode.LSB, Mode.USB, Mode.CW, Mode.CW_R, Mode.AM,
    Mode.FM, Mode.RTTY, Mode.RTTY_R,
})
ICOM_WIDE_MODES = ICOM_HF_MODES | {Mode.WFM}

KENWOOD_MODES = frozenset({
    Mode.LSB, Mode.USB, Mode.CW, Mode.CW_R, Mode.AM,
    Mode.FM, Mode.RTTY, Mode.RTTY_R,
})
ELECRAFT_MODES = frozenset({
    Mode.LSB, Mode.USB, Mode.CW, Mode.CW_R, Mode.AM,
    Mode.FM, Mode.RTTY, Mode.DATA_USB, Mode.DATA_LSB,
})
ELECRAFT_K2_MODES = frozenset({
    Mode.LSB, Mode.USB, Mode.CW, Mode.CW_R, Mode.RTTY,
})
YAESU_MODES = frozenset({
    Mode.LSB, Mode.USB, Mode.CW, Mode.CW_R, Mode.AM, Mode.FM, Mode.FM_N,
    Mode.RTTY, Mode.RTTY_R, Mode.DATA_USB, Mode.DATA_LSB, Mode.DATA_FM,
})

_ICOM_USB_ECHO = QuirkProfile(echo=EchoMode.ON, ack=AckMode.ACK)
_ICOM_AUTO_ECHO = QuirkProfile(echo=EchoMode.AUTO, ack=AckMode.ACK)

ICOM_AGC = frozenset({AgcSpeed.FAST, AgcSpeed.MEDIUM, AgcSpeed.SLOW})
ICOM_AGC_WITH_OFF = ICOM_AGC | {AgcSpeed.OFF}

# Receiver features shared by the HF rigs with a DSP IF (7300 class)
_ICOM_DSP = dict(
    has_noise_blanker=True,
    has_noise_reduction=True,
    has_if_filter=True,
    agc_speeds=ICOM_AGC,
    nr_level_max=255,
    memory_channels=99,
)
_ICOM_DSP_LEVELS = dict(_ICOM_DSP, agc_speeds=ICOM_AGC_WITH_OFF, nb_level_max=255)

IC_7300 = RigCapabilities(
    name="IC-7300",
    family=Family.ICOM,
    frequency_range=(30_000, 74_800_000),
    max_power=100,
    modes=ICOM_HF_MODES,
    power_units=PowerUnits.LEVEL,
    civ_address=0x94,
    default_baud=19200,
    **_ICOM_DSP,
    quirks=_ICOM_AUTO_ECHO,
)

IC_7100 = RigCapabilities(
    name="IC-7100",
    family=Family.ICOM,
    frequency_range=(30_000, 470_000_000),
    max_power=100,
    modes=ICOM_WIDE_MODES,
    power_units=PowerUnits.LEVEL,
    civ_address=0x88,
    requires_mode_filter=False,
    default_baud=19200,
    **dict(_ICOM_DSP_LEVELS, has_if_filter=False),
    quirks=_ICOM_USB_ECHO,
)

IC_705 = RigCapabilities(
    name="IC-705",
    family=Family.ICOM,
    frequency_range=(30_000, 470_000_000),
    max_power=10,
    modes=ICOM_WIDE_MODES,
    power_units=PowerUnits.LEVEL,
    civ_address=0xA4,
    default_baud=19200,
    **_ICOM_DSP_LEVELS,
    quirks=_ICOM_USB_ECHO,
)

IC_7600 = RigCapabilities(
    name="IC-7600",
    family=Family.ICOM,
    frequency_range=(30_000, 60_000_000),
    max_power=100,
    modes=ICOM_HF_MODES,
    topology=Topology.DUAL_RECEIVER,
    power_units=PowerUnits.LEVEL,
    civ_address=0x7A,
    default_baud=19200,
    **_ICOM_DSP,
    quirks=_ICOM_AUTO_ECHO,
)

IC_7610 = RigCapabilities(
    name="IC-7610",
    family=Family.ICOM,
    frequency_range=(30_000, 60_000_000),
    max_power=100,
    modes=ICOM_HF_MODES,
    topology=Topology.DUAL_RECEIVER,
    power_units=PowerUnits.LEVEL,
    civ_address=0x98,
    default_baud=19200,
    **_ICOM_DSP,
    quirks=_ICOM_AUTO_ECHO,
)

IC_9700 = RigCapabilities(
    name="IC-9700",
    family=Family.ICOM,
    frequency_range=(144_000_000, 1_300_000_000),
    max_power=100,
    modes=ICOM_HF_MODES,
    topology=Topology.FOUR_STATE,
    power_units=PowerUnits.LEVEL,
    civ_address=0xA2,
    default_baud=19200,
    **_ICOM_DSP_LEVELS,
    quirks=_ICOM_USB_ECHO,
)

IC_9100 = RigCapabilities(
    name="IC-9100",
    family=Family.ICOM,
    frequency_range=(30_000, 1_300_000_000),
    max_power=100,
    modes=ICOM_HF_MODES,
    topology=Topology.FOUR_STATE,
    power_units=PowerUnits.LEVEL,
    civ_address=0x7C,
    default_baud=19200,
    **_ICOM_DSP,
    quirks=_ICOM_AUTO_ECHO,
)

TS_590SG = RigCapabilities(
    name="TS-590SG",
    family=Family.KENWOOD,
    frequency_range=(30_000, 60_000_000),
    max_power=100,
    modes=KENWOOD_MODES,
    power_units=PowerUnits.WATTS,
    default_baud=115200,
    hardware_flow_control=True,
    has_noise_blanker=True,
    has_noise_reduction=True,
    nr_level_max=10,
    quirks=QuirkProfile(echo=EchoMode.OFF, ack=AckMode.NONE),
)

K2 = RigCapabilities(
    name="K2",
    family=Family.ELECRAFT,
    frequency_range=(500_000, 30_000_000),
    max_power=15,
    modes=ELECRAFT_K2_MODES,
    power_units=PowerUnits.WATTS,
    rit_max_offset=9990,
    rit_step=10,
    default_baud=4800,
    quirks=QuirkProfile(
        command_delay=0.1,
        echo=EchoMode.OFF,
        ack=AckMode.NONE,
        busy_token=b"?;",
        response_timeout=2.0,
    ),
)

K3 = RigCapabilities(
    name="K3",
    family=Family.ELECRAFT,
    frequency_range=(500_000, 54_000_000),
    max_power=100,
    modes=ELECRAFT_MODES,
    power_units=PowerUnits.WATTS,
    rit_max_offset=9990,
    rit_step=10,
    default_baud=38400,
    has_noise_blanker=True,
    agc_speeds=frozenset({AgcSpeed.FAST, AgcSpeed.SLOW}),
    quirks=QuirkProfile(echo=EchoMode.OFF, ack=AckMode.ECHO, busy_token=b"?;"),
)

FT_991A = RigCapabilities(
    name="FT-991A",
    family=Family.YAESU,
    frequency_range=(30_000, 470_000_000),
    max_power=100,
    modes=YAESU_MODES,
    power_units=PowerUnits.PERCENT,
    has_xit=False,
    default_baud=38400,
    stop_bits=2,
    has_noise_blanker=True,
    has_noise_reduction=True,
    agc_speeds=frozenset(AgcSpeed),
    nr_level_max=15,
    quirks=QuirkProfile(echo=EchoMode.OFF, ack=AckMode.ECHO),
)

RADIOS: dict[str, RigCapabilities] = {
    caps.name.lower(): caps
    for caps in (
        IC_7300, IC_7100, IC_705, IC_7600, IC_7610, IC_9700, IC_9100,
        TS_590SG, K2, K3, FT_991A,
    )
}


def lookup(name: str) -> RigCapabilities:
    """Find a sample descriptor by model name (case-insensitive)."""
    try:
        return RADIOS[name.strip().lower()]
    except KeyError:
        known = ", ".join(c.name for c in RADIOS.values())
        raise InvalidParameter(f"Unknown radio {name!r}; known: {known}") from None
