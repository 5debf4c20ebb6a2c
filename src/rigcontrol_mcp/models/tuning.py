"""RIT/XIT offset state and S-meter readings."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidParameter


@dataclass(frozen=True)
class RitXitState:
    """Receiver or transmitter incremental tuning state."""

    enabled: bool = False
    offset: int = 0  # Hz, signed

    @property
    def description(self) -> str:
        if not self.enabled:
            return "Off"
        return f"{self.offset:+d} Hz"

    def validate(self, max_offset: int, step: int = 1) -> None:
        """Check the offset against a radio's bounds and tuning step."""
        if abs(self.offset) > max_offset:
            raise InvalidParameter(
                f"Offset must be within ±{max_offset} Hz, got {self.offset}"
            )
        if step > 1 and self.offset % step:
            raise InvalidParameter(
                f"Offset must be a multiple of {step} Hz, got {self.offset}"
            )


@dataclass(frozen=True)
class SignalStrength:
    """S-meter reading.

    ``s_units`` is clamped to 0-9 and ``over_s9`` to 0-60 dB. ``raw`` keeps
    the radio's own meter value for diagnostics.
    """

    s_units: int
    over_s9: int = 0
    raw: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "s_units", max(0, min(9, self.s_units)))
        object.__setattr__(self, "over_s9", max(0, min(60, self.over_s9)))

    def __str__(self) -> str:
        if self.s_units < 9:
            return f"S{self.s_units}"
        return f"S9+{self.over_s9}"

    @property
    def decibels(self) -> int:
        """Approximate level in dB over S0 (6 dB per S-unit)."""
        if self.s_units < 9:
            return self.s_units * 6
        return 54 + self.over_s9

    @property
    def is_strong(self) -> bool:
        return self.s_units >= 9 and self.over_s9 > 0


@dataclass(frozen=True)
class MeterCalibration:
    """Linear raw-meter to S-unit mapping.

    These points were measured on real radios and are approximate.

    Args:
        s9: Raw value that reads S9.
        s9_plus_60: Raw value that reads S9+60 dB.
    """

    s9: int
    s9_plus_60: int

    def convert(self, raw: int) -> SignalStrength:
        s_units = min(raw * 9 // self.s9, 9)
        over = 0
        if raw > self.s9:
            over = (raw - self.s9) * 60 // (self.s9_plus_60 - self.s9)
        return SignalStrength(s_units=s_units, over_s9=over, raw=raw)
