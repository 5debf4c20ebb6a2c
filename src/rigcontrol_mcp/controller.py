"""High-level, radio-independent control API.

:class:`RigController` is the entry point applications use. It picks the
protocol engine from the model's capability descriptor, rejects
unsupported or out-of-range requests before anything is sent, and caches
reads for a short TTL.

Usage::

    caps = radios.lookup("IC-7300")
    link = SerialConnection(SerialConfig.for_rig("/dev/ttyUSB0", caps))
    with RigController(caps, link) as rig:
        rig.set_frequency(14_074_000)
        rig.set_mode(Mode.USB)
        print(rig.frequency(), rig.signal_strength())
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .cache import DEFAULT_TTL, CacheStatistics, StateCache
from .engine import RigEngine, create_engine
from .errors import InvalidParameter, NotConnected, UnsupportedOperation
from .models.capabilities import RigCapabilities
from .models.memory import MemoryChannel
from .models.mode import Mode
from .models.receiver import AgcSpeed, IfFilter, NoiseControl
from .models.tuning import RitXitState, SignalStrength
from .models.vfo import VFO, Band, Target
from .transport.base import Transport

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Readable/writable radio state."""

    FREQUENCY = "frequency"
    MODE = "mode"
    PTT = "ptt"
    SPLIT = "split"
    POWER = "power"
    RIT = "rit"
    XIT = "xit"
    SIGNAL_STRENGTH = "signal_strength"
    AGC = "agc"
    NOISE_BLANKER = "noise_blanker"
    NOISE_REDUCTION = "noise_reduction"
    IF_FILTER = "if_filter"


# PTT and the S-meter change by themselves and are always read live.
CACHED_OPERATIONS = frozenset({
    Operation.FREQUENCY,
    Operation.MODE,
    Operation.SPLIT,
    Operation.POWER,
    Operation.RIT,
    Operation.XIT,
    Operation.AGC,
    Operation.NOISE_BLANKER,
    Operation.NOISE_REDUCTION,
    Operation.IF_FILTER,
})

TARGETED_OPERATIONS = frozenset({Operation.FREQUENCY, Operation.MODE, Operation.IF_FILTER})

READ_ONLY_OPERATIONS = frozenset({Operation.SIGNAL_STRENGTH})

# Capability flag that must be set for each gated operation.
CAPABILITY_GATES: dict[Operation, str] = {
    Operation.PTT: "has_ptt",
    Operation.SPLIT: "has_split",
    Operation.POWER: "has_power_control",
    Operation.RIT: "has_rit",
    Operation.XIT: "has_xit",
    Operation.SIGNAL_STRENGTH: "has_signal_strength",
    Operation.AGC: "has_agc",
    Operation.NOISE_BLANKER: "has_noise_blanker",
    Operation.NOISE_REDUCTION: "has_noise_reduction",
    Operation.IF_FILTER: "has_if_filter",
}

# Values that belong to whichever slot is selected.
SLOT_OPERATIONS = (Operation.FREQUENCY, Operation.MODE, Operation.IF_FILTER)

# Writes that also change another operation's value.
COUPLED_OPERATIONS: dict[Operation, tuple[Operation, ...]] = {
    Operation.RIT: (Operation.XIT,),
    Operation.XIT: (Operation.RIT,),
    Operation.MODE: (Operation.IF_FILTER,),
}


class RigController:
    """Uniform control of one radio over one transport.

    All methods are blocking and thread-safe: each call holds the
    connection's session lock for its whole wire exchange.
    """

    def __init__(
        self,
        capabilities: RigCapabilities,
        transport: Transport,
        cache_ttl: float = DEFAULT_TTL,
        civ_address: int | None = None,
    ) -> None:
        self.capabilities = capabilities
        self._engine = create_engine(capabilities, transport, civ_address=civ_address)
        self._cache = StateCache(ttl=cache_ttl)

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"RigController({self.capabilities.name}, {state})"

    # ─── LIFECYCLE ─────────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._engine.connected

    @property
    def engine(self) -> RigEngine:
        return self._engine

    def connect(self) -> None:
        """Open the transport and prepare the radio for CAT control."""
        if self.connected:
            return
        self._engine.connect()
        logger.info("Connected to %s", self.capabilities.name)

    def disconnect(self) -> None:
        """Close the transport and forget all cached state."""
        try:
            self._engine.disconnect()
        finally:
            self._cache.clear()
            logger.info("Disconnected from %s", self.capabilities.name)

    def __enter__(self) -> RigController:
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    # ─── UNIFORM API ───────────────────────────────────────────────────

    def get(
        self,
        operation: Operation | str,
        target: Target | None = None,
        use_cache: bool = True,
    ) -> Any:
        """Read one piece of radio state.

        Args:
            operation: What to read.
            target: Slot for frequency and mode; ``None`` is the current one.
            use_cache: Serve a value read less than the TTL ago.
        """
        operation = Operation(operation)
        target = self._prepare(operation, target)
        key = (operation, target)

        # Read and cache update are one step with respect to writes.
        with self._engine.session.lock:
            if use_cache and operation in CACHED_OPERATIONS:
                cached = self._cache.get(key)
                if cached is not None:
                    return cached

            if target is not None:
                self._forget_current_slot()
            value = self._read(operation, target)
            if operation in CACHED_OPERATIONS:
                self._cache.put(key, value)
            return value

    def set(
        self,
        operation: Operation | str,
        value: Any,
        target: Target | None = None,
    ) -> None:
        """Write one piece of radio state.

        Cached copies are dropped before the write, so a failed or timed-out
        write never leaves a stale value behind. On success the written
        value is cached.
        """
        operation = Operation(operation)
        if operation in READ_ONLY_OPERATIONS:
            raise InvalidParameter(f"{operation.value} is read-only")
        target = self._prepare(operation, target)
        value = self._validate(operation, value)

        with self._engine.session.lock:
            self._cache.invalidate(operation, target)
            for coupled in COUPLED_OPERATIONS.get(operation, ()):
                self._cache.invalidate(coupled)
            if target is not None:
                self._forget_current_slot()

            self._write(operation, value, target)
            if operation in CACHED_OPERATIONS:
                self._cache.put((operation, target), value)

    # ─── TYPED CONVENIENCE API ─────────────────────────────────────────

    def frequency(self, target: Target | None = None, use_cache: bool = True) -> int:
        return self.get(Operation.FREQUENCY, target, use_cache)

    def set_frequency(self, hz: int, target: Target | None = None) -> None:
        self.set(Operation.FREQUENCY, hz, target)

    def mode(self, target: Target | None = None, use_cache: bool = True) -> Mode:
        return self.get(Operation.MODE, target, use_cache)

    def set_mode(self, mode: Mode | str, target: Target | None = None) -> None:
        self.set(Operation.MODE, mode, target)

    def ptt(self) -> bool:
        return self.get(Operation.PTT)

    def set_ptt(self, transmit: bool) -> None:
        self.set(Operation.PTT, transmit)

    def split(self, use_cache: bool = True) -> bool:
        return self.get(Operation.SPLIT, use_cache=use_cache)

    def set_split(self, enabled: bool) -> None:
        self.set(Operation.SPLIT, enabled)

    def power(self, use_cache: bool = True) -> int:
        """RF output power setting in watts."""
        return self.get(Operation.POWER, use_cache=use_cache)

    def set_power(self, watts: int) -> None:
        self.set(Operation.POWER, watts)

    def rit(self, use_cache: bool = True) -> RitXitState:
        return self.get(Operation.RIT, use_cache=use_cache)

    def set_rit(self, state: RitXitState) -> None:
        self.set(Operation.RIT, state)

    def xit(self, use_cache: bool = True) -> RitXitState:
        return self.get(Operation.XIT, use_cache=use_cache)

    def set_xit(self, state: RitXitState) -> None:
        self.set(Operation.XIT, state)

    def signal_strength(self) -> SignalStrength:
        return self.get(Operation.SIGNAL_STRENGTH)

    def adjust_rit(self, steps: int) -> None:
        """Move the RIT/XIT offset by ``steps`` tuning steps (negative is down)."""
        self._require(Operation.RIT)
        with self._engine.session.lock:
            self._cache.invalidate_operations(Operation.RIT, Operation.XIT)
            self._engine.adjust_rit(steps)

    def clear_rit(self) -> None:
        """Zero the RIT/XIT offset."""
        self._require(Operation.RIT)
        with self._engine.session.lock:
            self._cache.invalidate_operations(Operation.RIT, Operation.XIT)
            self._engine.clear_rit()

    def agc(self, use_cache: bool = True) -> AgcSpeed:
        return self.get(Operation.AGC, use_cache=use_cache)

    def set_agc(self, speed: AgcSpeed | str) -> None:
        self.set(Operation.AGC, speed)

    def noise_blanker(self, use_cache: bool = True) -> NoiseControl:
        return self.get(Operation.NOISE_BLANKER, use_cache=use_cache)

    def set_noise_blanker(self, setting: NoiseControl | bool) -> None:
        self.set(Operation.NOISE_BLANKER, setting)

    def noise_reduction(self, use_cache: bool = True) -> NoiseControl:
        return self.get(Operation.NOISE_REDUCTION, use_cache=use_cache)

    def set_noise_reduction(self, setting: NoiseControl | bool) -> None:
        self.set(Operation.NOISE_REDUCTION, setting)

    def if_filter(self, target: Target | None = None, use_cache: bool = True) -> IfFilter:
        return self.get(Operation.IF_FILTER, target, use_cache)

    def set_if_filter(self, slot: IfFilter | int | str, target: Target | None = None) -> None:
        self.set(Operation.IF_FILTER, slot, target)

    def identify(self) -> str:
        self._require_connected()
        return self._engine.identify()

    # ─── MEMORY ────────────────────────────────────────────────────────

    def memory_channel_count(self) -> int:
        self._require_memory()
        return self.capabilities.memory_channels

    def memory_channel(self, number: int) -> MemoryChannel:
        """Read a stored channel. Raises CommandFailed for an empty one."""
        self._require_memory()
        self.capabilities.check_memory_channel(number)
        return self._reselect(lambda: self._engine.get_memory_channel(number))

    def set_memory_channel(self, channel: MemoryChannel) -> None:
        """Store a channel. The current VFO is retuned to its contents."""
        self._require_memory()
        caps = self.capabilities
        caps.check_memory_channel(channel.number)
        caps.check_frequency(channel.frequency)
        caps.check_mode(channel.mode)
        self._reselect(lambda: self._engine.set_memory_channel(channel))

    def clear_memory_channel(self, number: int) -> None:
        self._require_memory()
        self.capabilities.check_memory_channel(number)
        self._reselect(lambda: self._engine.clear_memory_channel(number))

    # ─── VFO / BAND ────────────────────────────────────────────────────

    def select_vfo(self, vfo: VFO) -> None:
        self._reselect(lambda: self._engine.select_vfo(vfo))

    def select_band(self, band: Band) -> None:
        self._reselect(lambda: self._engine.select_band(band))

    def select_band_vfo(self, band: Band, vfo: VFO) -> None:
        self._reselect(lambda: self._engine.select_band_vfo(band, vfo))

    def exchange(self) -> None:
        """Swap frequency and mode between main and sub (or VFO A and B)."""
        self._reselect(self._engine.exchange)

    def equalize(self) -> None:
        """Copy main to sub (or VFO A to B)."""
        self._reselect(self._engine.equalize)

    # ─── BATCH / CACHE ─────────────────────────────────────────────────

    def configure(
        self,
        frequency: int | None = None,
        mode: Mode | str | None = None,
        power: int | None = None,
        split: bool | None = None,
        target: Target | None = None,
    ) -> None:
        """Apply several settings in one call, in a fixed order.

        Every value is validated before the first command is sent.
        """
        if frequency is not None:
            self._validate(Operation.FREQUENCY, frequency)
        if mode is not None:
            self._validate(Operation.MODE, mode)
        if power is not None:
            self._require(Operation.POWER)
            self._validate(Operation.POWER, power)
        if split is not None:
            self._require(Operation.SPLIT)

        with self._engine.session.lock:
            if frequency is not None:
                self.set_frequency(frequency, target)
            if mode is not None:
                self.set_mode(mode, target)
            if power is not None:
                self.set_power(power)
            if split is not None:
                self.set_split(split)

    def cache_statistics(self) -> CacheStatistics:
        return self._cache.statistics()

    def invalidate_cache(self) -> None:
        self._cache.clear()

    # ─── INTERNALS ─────────────────────────────────────────────────────

    def _require_connected(self) -> None:
        if not self.connected:
            raise NotConnected()

    def _require(self, operation: Operation) -> None:
        self._require_connected()
        flag = CAPABILITY_GATES.get(operation)
        if flag is not None and not getattr(self.capabilities, flag):
            raise UnsupportedOperation(
                f"{self.capabilities.name} does not support {operation.value}"
            )

    def _require_memory(self) -> None:
        self._require_connected()
        if not self.capabilities.has_memory:
            raise UnsupportedOperation(
                f"{self.capabilities.name} has no memory channel support"
            )

    def _prepare(self, operation: Operation, target: Target | None) -> Target | None:
        self._require(operation)
        if operation not in TARGETED_OPERATIONS:
            return None
        # Reject targets the topology cannot address before touching the wire.
        self._engine.addressing.validate(target)
        if target is not None and target.band is None and target.vfo is None:
            return None
        return target

    def _validate(self, operation: Operation, value: Any) -> Any:
        caps = self.capabilities
        if operation is Operation.FREQUENCY:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameter(f"Frequency must be an integer in Hz, got {value!r}")
            caps.check_frequency(value)
        elif operation is Operation.MODE:
            value = Mode.parse(value)
            caps.check_mode(value)
        elif operation is Operation.POWER:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidParameter(f"Power must be an integer in watts, got {value!r}")
            caps.check_power(value)
        elif operation in (Operation.RIT, Operation.XIT):
            if not isinstance(value, RitXitState):
                raise InvalidParameter(f"Expected RitXitState, got {value!r}")
            value.validate(caps.rit_max_offset, caps.rit_step)
        elif operation in (Operation.PTT, Operation.SPLIT):
            value = bool(value)
        elif operation is Operation.AGC:
            value = AgcSpeed.parse(value)
            caps.check_agc(value)
        elif operation in (Operation.NOISE_BLANKER, Operation.NOISE_REDUCTION):
            if isinstance(value, bool):
                value = NoiseControl(enabled=value)
            if not isinstance(value, NoiseControl):
                raise InvalidParameter(f"Expected NoiseControl, got {value!r}")
            if operation is Operation.NOISE_BLANKER:
                value.validate(caps.nb_level_max)
            else:
                value.validate(caps.nr_level_max)
        elif operation is Operation.IF_FILTER:
            value = IfFilter.parse(value)
        return value

    def _read(self, operation: Operation, target: Target | None) -> Any:
        engine = self._engine
        if operation is Operation.FREQUENCY:
            return engine.get_frequency(target)
        if operation is Operation.MODE:
            return engine.get_mode(target)
        if operation is Operation.PTT:
            return engine.get_ptt()
        if operation is Operation.SPLIT:
            return engine.get_split()
        if operation is Operation.POWER:
            return engine.get_power()
        if operation is Operation.RIT:
            return engine.get_rit()
        if operation is Operation.XIT:
            return engine.get_xit()
        if operation is Operation.SIGNAL_STRENGTH:
            return engine.get_signal_strength()
        if operation is Operation.AGC:
            return engine.get_agc()
        if operation is Operation.NOISE_BLANKER:
            return engine.get_noise_blanker()
        if operation is Operation.NOISE_REDUCTION:
            return engine.get_noise_reduction()
        if operation is Operation.IF_FILTER:
            return engine.get_if_filter(target)
        raise ValueError(f"Unhandled operation: {operation}")

    def _write(self, operation: Operation, value: Any, target: Target | None) -> None:
        engine = self._engine
        if operation is Operation.FREQUENCY:
            engine.set_frequency(value, target)
        elif operation is Operation.MODE:
            engine.set_mode(value, target)
        elif operation is Operation.PTT:
            engine.set_ptt(value)
        elif operation is Operation.SPLIT:
            engine.set_split(value)
        elif operation is Operation.POWER:
            engine.set_power(value)
        elif operation is Operation.RIT:
            engine.set_rit(value)
        elif operation is Operation.XIT:
            engine.set_xit(value)
        elif operation is Operation.AGC:
            engine.set_agc(value)
        elif operation is Operation.NOISE_BLANKER:
            engine.set_noise_blanker(value)
        elif operation is Operation.NOISE_REDUCTION:
            engine.set_noise_reduction(value)
        elif operation is Operation.IF_FILTER:
            engine.set_if_filter(value, target)
        else:
            raise ValueError(f"Unhandled operation: {operation}")

    def _forget_current_slot(self) -> None:
        # Addressing a named slot may leave it selected on the radio.
        for operation in TARGETED_OPERATIONS:
            self._cache.discard((operation, None))

    def _reselect(self, action) -> Any:
        """Run a selection-changing action and drop slot-dependent cache entries."""
        self._require_connected()
        with self._engine.session.lock:
            self._cache.invalidate_operations(*SLOT_OPERATIONS)
            try:
                return action()
            finally:
                self._cache.invalidate_operations(*SLOT_OPERATIONS)
