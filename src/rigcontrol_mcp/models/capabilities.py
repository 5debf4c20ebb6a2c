"""Capability descriptors and per-model quirk profiles.

A :class:`RigCapabilities` instance is static data describing one radio
model: what it can do, how it is wired and how it misbehaves. The engines
never guess at model behaviour; everything model-specific comes from here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import InvalidParameter, UnsupportedOperation
from .mode import Mode
from .receiver import AgcSpeed


class Family(str, Enum):
    """Wire protocol family."""

    ICOM = "icom"
    KENWOOD = "kenwood"
    ELECRAFT = "elecraft"
    YAESU = "yaesu"


class Topology(str, Enum):
    """How the radio's VFO/receiver slots are addressed."""

    SIMPLE = "simple"  # one receiver, VFO A/B
    DUAL_RECEIVER = "dual_receiver"  # main/sub receivers
    FOUR_STATE = "four_state"  # main/sub, each with A/B


class EchoMode(str, Enum):
    """Whether the interface reflects transmitted bytes."""

    AUTO = "auto"
    ON = "on"
    OFF = "off"


class AckMode(str, Enum):
    """How the radio confirms a SET command."""

    ACK = "ack"  # CI-V FB / FA frame
    ECHO = "echo"  # command text echoed back
    NONE = "none"  # silent; trust success after the delay


class PowerUnits(str, Enum):
    """Unit of the power field on the wire."""

    LEVEL = "level"  # 0-255 scale of max power
    PERCENT = "percent"
    WATTS = "watts"


@dataclass(frozen=True)
class QuirkProfile:
    """Timing and acknowledgment behaviour of one model."""

    command_delay: float = 0.0  # seconds between one exchange and the next write
    echo: EchoMode = EchoMode.AUTO
    ack: AckMode = AckMode.ACK
    busy_token: bytes | None = None
    response_timeout: float = 1.0


@dataclass(frozen=True)
class RigCapabilities:
    """Static description of a radio model."""

    name: str
    family: Family
    frequency_range: tuple[int, int]
    max_power: int
    modes: frozenset[Mode]
    topology: Topology = Topology.SIMPLE
    power_units: PowerUnits = PowerUnits.PERCENT
    has_split: bool = True
    has_rit: bool = True
    has_xit: bool = True
    has_ptt: bool = True
    has_power_control: bool = True
    has_signal_strength: bool = True
    has_noise_blanker: bool = False
    has_noise_reduction: bool = False
    has_if_filter: bool = False
    agc_speeds: frozenset[AgcSpeed] = frozenset()
    nb_level_max: int = 0  # 0: on/off only
    nr_level_max: int = 0
    memory_channels: int = 0
    rit_max_offset: int = 9999
    rit_step: int = 1
    civ_address: int | None = None
    requires_mode_filter: bool = True
    default_baud: int = 9600
    stop_bits: int = 1
    hardware_flow_control: bool = False
    quirks: QuirkProfile = field(default_factory=QuirkProfile)

    def __repr__(self) -> str:
        lo, hi = self.frequency_range
        return (
            f"RigCapabilities({self.name!r}, family={self.family.value}, "
            f"{lo}-{hi} Hz, {self.max_power} W, topology={self.topology.value})"
        )

    def check_frequency(self, hz: int) -> None:
        lo, hi = self.frequency_range
        if not lo <= hz <= hi:
            raise InvalidParameter(
                f"Frequency {hz} Hz outside {self.name} range {lo}-{hi} Hz"
            )

    def check_power(self, watts: int) -> None:
        if not 0 <= watts <= self.max_power:
            raise InvalidParameter(
                f"Power must be 0-{self.max_power} W, got {watts}"
            )

    def check_mode(self, mode: Mode) -> None:
        if mode not in self.modes:
            raise UnsupportedOperation(f"{self.name} does not support mode {mode}")

    @property
    def has_agc(self) -> bool:
        return bool(self.agc_speeds)

    @property
    def has_memory(self) -> bool:
        return self.memory_channels > 0

    def check_agc(self, speed: AgcSpeed) -> None:
        if speed not in self.agc_speeds:
            known = ", ".join(s.value for s in AgcSpeed if s in self.agc_speeds)
            raise InvalidParameter(
                f"{self.name} AGC cannot be {speed.value}; choose from: {known}"
            )

    def check_memory_channel(self, number: int) -> None:
        if not 1 <= number <= self.memory_channels:
            raise InvalidParameter(
                f"Memory channel must be 1-{self.memory_channels}, got {number}"
            )
