"""Receiver DSP settings: AGC, noise blanker, noise reduction and IF filter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from ..errors import InvalidParameter


class AgcSpeed(str, Enum):
    """AGC time constant."""

    OFF = "off"
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    AUTO = "auto"

    @classmethod
    def parse(cls, name: str | AgcSpeed) -> AgcSpeed:
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        if key == "mid":
            key = "medium"
        try:
            return cls(key)
        except ValueError:
            raise InvalidParameter(f"Unknown AGC speed: {name!r}") from None


class IfFilter(IntEnum):
    """Preset IF filter slot, widest first."""

    FIL1 = 1
    FIL2 = 2
    FIL3 = 3

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: int | str | IfFilter) -> IfFilter:
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper().removeprefix("FIL")
        try:
            return cls(int(text))
        except ValueError:
            raise InvalidParameter(f"IF filter must be 1-3 or FIL1-FIL3, got {value!r}") from None


@dataclass(frozen=True)
class NoiseControl:
    """Noise blanker or noise reduction setting.

    ``level`` is ``None`` for a plain on/off switch or when the radio has
    no level control.
    """

    enabled: bool = False
    level: int | None = None

    @property
    def description(self) -> str:
        if not self.enabled:
            return "Off"
        if self.level is None:
            return "On"
        return f"On (level {self.level})"

    def validate(self, max_level: int) -> None:
        """Check the level against a radio's range (0 means no level control)."""
        if self.level is None:
            return
        if not max_level:
            raise InvalidParameter("Radio has no level control for this setting")
        if not 0 <= self.level <= max_level:
            raise InvalidParameter(f"Level must be 0-{max_level}, got {self.level}")
