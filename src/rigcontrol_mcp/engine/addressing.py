"""VFO / receiver selection state machine.

Radios address frequency and mode commands to whatever slot is currently
selected. Reaching a specific slot means selecting it first, one axis at a
time, because no command selects band and VFO together::

    SIMPLE          select VFO                   -> command
    DUAL_RECEIVER   select band                  -> command
    FOUR_STATE      select band -> select VFO    -> command

:meth:`AddressingState.plan` turns a :class:`Target` into the ordered
selection steps; the engine issues them and :meth:`latch` records each
one that the radio acknowledged. The latched state is only a record: the
operator can change the selection from the front panel at any time, so
explicit targets are always re-selected.
"""

from __future__ import annotations

from ..errors import UnsupportedOperation
from ..models.capabilities import Topology
from ..models.vfo import VFO, Band, Target

Step = Band | VFO


class AddressingState:
    """Selection state of one radio."""

    def __init__(self, topology: Topology) -> None:
        self.topology = topology
        self.active_band: Band | None = None
        self._active_vfo: dict[Band | None, VFO] = {}

    @property
    def current(self) -> Target:
        """Last selection the radio acknowledged; parts may be unknown."""
        return Target(band=self.active_band, vfo=self._active_vfo.get(self.active_band))

    def reset(self) -> None:
        """Forget the latched selection (after connect, timeout or error)."""
        self.active_band = None
        self._active_vfo.clear()

    def validate(self, target: Target | None) -> Target | None:
        """Check a target against the topology and fill in implied parts.

        Raises:
            UnsupportedOperation: If the target names an axis this radio
                does not have.
        """
        if target is None or (target.band is None and target.vfo is None):
            return None

        if self.topology is Topology.SIMPLE:
            if target.band is not None:
                raise UnsupportedOperation(
                    "Radio has a single receiver; address VFO A or B instead"
                )
            return target

        if self.topology is Topology.DUAL_RECEIVER:
            if target.vfo is not None:
                raise UnsupportedOperation(
                    "Radio has main/sub receivers without A/B VFOs"
                )
            return target

        # FOUR_STATE: a bare VFO means that VFO on the current band.
        if target.band is None:
            return Target(band=self.active_band or Band.MAIN, vfo=target.vfo)
        return target

    def plan(self, target: Target | None) -> list[Step]:
        """Ordered selection steps needed before addressing ``target``."""
        resolved = self.validate(target)
        if resolved is None:
            return []
        steps: list[Step] = []
        if resolved.band is not None:
            steps.append(resolved.band)
        if resolved.vfo is not None:
            steps.append(resolved.vfo)
        return steps

    def latch(self, step: Step) -> None:
        """Record a selection step the radio acknowledged."""
        if isinstance(step, Band):
            self.active_band = step
        else:
            self._active_vfo[self.active_band] = step
