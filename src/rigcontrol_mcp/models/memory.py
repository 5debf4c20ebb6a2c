"""Memory channel contents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .mode import Mode


@dataclass(frozen=True)
class MemoryChannel:
    """One stored memory channel."""

    number: int
    frequency: int  # Hz
    mode: Mode

    def __str__(self) -> str:
        return f"Ch {self.number}: {self.frequency / 1_000_000:.6f} MHz {self.mode.value}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "frequency_hz": self.frequency,
            "mode": self.mode.value,
        }
