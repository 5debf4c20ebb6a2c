"""Common shape of the per-family protocol engines."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from ..errors import RigError, UnsupportedOperation
from ..models.capabilities import RigCapabilities
from ..models.memory import MemoryChannel
from ..models.mode import Mode
from ..models.receiver import AgcSpeed, IfFilter, NoiseControl
from ..models.tuning import RitXitState, SignalStrength
from ..models.vfo import VFO, Band, Target
from ..transport.base import Transport
from .addressing import AddressingState, Step
from .session import Session

logger = logging.getLogger(__name__)


class RigEngine(ABC):
    """Drives one radio over one transport.

    Engines trust their arguments: range and capability checks happen in
    :class:`~rigcontrol_mcp.controller.RigController` before any engine
    method is called. Power is always exchanged in watts here.
    """

    def __init__(
        self,
        capabilities: RigCapabilities,
        transport: Transport,
        terminator: int,
    ) -> None:
        self.capabilities = capabilities
        self.session = Session(transport, capabilities.quirks, terminator)
        self.addressing = AddressingState(capabilities.topology)

    @property
    def connected(self) -> bool:
        return self.session.connected

    def connect(self) -> None:
        with self.session.lock:
            self.session.open()
            self.addressing.reset()
            try:
                self._handshake()
            except Exception:
                self.session.close()
                raise

    def disconnect(self) -> None:
        with self.session.lock:
            try:
                self.session.close()
            finally:
                self.addressing.reset()

    # ─── SELECTION ─────────────────────────────────────────────────────

    def select(self, target: Target | None) -> None:
        """Issue the selection steps for ``target`` (no-op for ``None``)."""
        with self.session.lock:
            steps = self.addressing.plan(target)
            try:
                for step in steps:
                    self._select(step)
                    self.addressing.latch(step)
            except RigError:
                self.addressing.reset()
                raise

    def select_band(self, band: Band) -> None:
        self.select(Target(band=band))

    def select_vfo(self, vfo: VFO) -> None:
        self.select(Target(vfo=vfo))

    def select_band_vfo(self, band: Band, vfo: VFO) -> None:
        self.select(Target(band=band, vfo=vfo))

    @contextmanager
    def targeting(self, target: Target | None) -> Iterator[None]:
        """Hold the session lock, select ``target``, then run the body."""
        with self.session.lock:
            self.select(target)
            try:
                yield
            except RigError:
                self.addressing.reset()
                raise

    # ─── FAMILY-SPECIFIC ───────────────────────────────────────────────

    @abstractmethod
    def _handshake(self) -> None:
        """Put the radio into a known protocol state after opening."""

    @abstractmethod
    def _select(self, step: Step) -> None:
        """Send one band or VFO selection command."""

    @abstractmethod
    def identify(self) -> str: ...

    @abstractmethod
    def get_frequency(self, target: Target | None = None) -> int: ...

    @abstractmethod
    def set_frequency(self, hz: int, target: Target | None = None) -> None: ...

    @abstractmethod
    def get_mode(self, target: Target | None = None) -> Mode: ...

    @abstractmethod
    def set_mode(self, mode: Mode, target: Target | None = None) -> None: ...

    @abstractmethod
    def get_ptt(self) -> bool: ...

    @abstractmethod
    def set_ptt(self, transmit: bool) -> None: ...

    @abstractmethod
    def get_split(self) -> bool: ...

    @abstractmethod
    def set_split(self, enabled: bool) -> None: ...

    @abstractmethod
    def get_power(self) -> int: ...

    @abstractmethod
    def set_power(self, watts: int) -> None: ...

    @abstractmethod
    def get_rit(self) -> RitXitState: ...

    @abstractmethod
    def set_rit(self, state: RitXitState) -> None: ...

    @abstractmethod
    def get_xit(self) -> RitXitState: ...

    @abstractmethod
    def set_xit(self, state: RitXitState) -> None: ...

    @abstractmethod
    def adjust_rit(self, steps: int) -> None:
        """Move the RIT/XIT offset by ``steps`` tuning steps."""

    @abstractmethod
    def clear_rit(self) -> None: ...

    @abstractmethod
    def get_signal_strength(self) -> SignalStrength: ...

    @abstractmethod
    def exchange(self) -> None:
        """Swap main and sub (A and B on single-receiver radios)."""

    @abstractmethod
    def equalize(self) -> None:
        """Copy main to sub (A to B on single-receiver radios)."""

    # ─── RECEIVER DSP ──────────────────────────────────────────────────

    @abstractmethod
    def get_agc(self) -> AgcSpeed: ...

    @abstractmethod
    def set_agc(self, speed: AgcSpeed) -> None: ...

    @abstractmethod
    def get_noise_blanker(self) -> NoiseControl: ...

    @abstractmethod
    def set_noise_blanker(self, setting: NoiseControl) -> None: ...

    @abstractmethod
    def get_noise_reduction(self) -> NoiseControl: ...

    @abstractmethod
    def set_noise_reduction(self, setting: NoiseControl) -> None: ...

    def get_if_filter(self, target: Target | None = None) -> IfFilter:
        raise UnsupportedOperation(f"{self.capabilities.name} has no IF filter presets")

    def set_if_filter(self, slot: IfFilter, target: Target | None = None) -> None:
        raise UnsupportedOperation(f"{self.capabilities.name} has no IF filter presets")

    # ─── MEMORY ────────────────────────────────────────────────────────

    def get_memory_channel(self, number: int) -> MemoryChannel:
        raise UnsupportedOperation(f"{self.capabilities.name} has no memory channel commands")

    def set_memory_channel(self, channel: MemoryChannel) -> None:
        raise UnsupportedOperation(f"{self.capabilities.name} has no memory channel commands")

    def clear_memory_channel(self, number: int) -> None:
        raise UnsupportedOperation(f"{self.capabilities.name} has no memory channel commands")
