"""Data models for modes, VFO addressing, tuning state and capabilities."""

from .mode import Mode
from .vfo import VFO, Band, Target
from .tuning import RitXitState, SignalStrength, MeterCalibration
from .receiver import AgcSpeed, IfFilter, NoiseControl
from .memory import MemoryChannel
from .capabilities import (
    AckMode,
    EchoMode,
    Family,
    PowerUnits,
    QuirkProfile,
    RigCapabilities,
    Topology,
)
