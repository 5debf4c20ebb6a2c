"""VFO and receiver-band addressing types.

A radio exposes up to four frequency/mode slots::

    +--------------+---------+---------+
    |              |  VFO A  |  VFO B  |
    +--------------+---------+---------+
    | Main band    |  slot   |  slot   |
    | Sub band     |  slot   |  slot   |
    +--------------+---------+---------+

Single-receiver radios only have the A/B row, dual-receiver radios
without sub-VFOs only have the band column, and four-state radios
(IC-9700, IC-9100) have all four. A :class:`Target` names one slot,
or part of one; ``None`` means "whatever is currently selected".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidParameter


class VFO(str, Enum):
    """VFO register within a receiver."""

    A = "A"
    B = "B"

    @property
    def other(self) -> VFO:
        return VFO.B if self is VFO.A else VFO.A


class Band(str, Enum):
    """Receiver chain on dual-receiver radios."""

    MAIN = "main"
    SUB = "sub"

    @property
    def other(self) -> Band:
        return Band.SUB if self is Band.MAIN else Band.MAIN


@dataclass(frozen=True)
class Target:
    """A (band, VFO) slot. Either half may be left out."""

    band: Band | None = None
    vfo: VFO | None = None

    def __str__(self) -> str:
        if self.band and self.vfo:
            return f"{self.band.value}-{self.vfo.value}"
        if self.band:
            return self.band.value
        if self.vfo:
            return self.vfo.value
        return "current"

    @classmethod
    def parse(cls, text: str | None) -> Target | None:
        """Parse ``"A"``, ``"sub"``, ``"main-b"`` or ``"sub/A"``.

        Empty strings and ``"current"`` parse to ``None``.
        """
        if text is None:
            return None
        key = text.strip().lower().replace("/", "-").replace(" ", "-")
        if key in ("", "current", "currvfo"):
            return None

        band: Band | None = None
        vfo: VFO | None = None
        for part in key.split("-"):
            if part in ("main", "primary"):
                band = Band.MAIN
            elif part in ("sub", "secondary"):
                band = Band.SUB
            elif part in ("a", "vfoa"):
                vfo = VFO.A
            elif part in ("b", "vfob"):
                vfo = VFO.B
            else:
                raise InvalidParameter(f"Unknown VFO target: {text!r}")
        return cls(band=band, vfo=vfo)
