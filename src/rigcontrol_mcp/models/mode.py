"""Operating modes common to all supported radio families."""

from __future__ import annotations

from enum import Enum

from ..errors import InvalidParameter


class Mode(str, Enum):
    """Operating mode.

    Values are the display names used in tool arguments and results.
    Which modes a radio actually supports is declared by its capability
    descriptor, and each protocol maps these onto its own wire codes.
    """

    LSB = "LSB"
    USB = "USB"
    CW = "CW"
    CW_R = "CW-R"
    AM = "AM"
    FM = "FM"
    FM_N = "FM-N"
    WFM = "WFM"
    RTTY = "RTTY"
    RTTY_R = "RTTY-R"
    DATA_USB = "DATA-USB"
    DATA_LSB = "DATA-LSB"
    DATA_FM = "DATA-FM"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str | Mode) -> Mode:
        """Look up a mode by display name, case-insensitively.

        ``"cwr"`` and ``"cw_r"`` are accepted as well as ``"CW-R"``.
        """
        if isinstance(name, Mode):
            return name
        key = name.strip().upper().replace("_", "-")
        for mode in cls:
            if key in (mode.value, mode.value.replace("-", "")):
                return mode
        raise InvalidParameter(f"Unknown mode: {name!r}")
