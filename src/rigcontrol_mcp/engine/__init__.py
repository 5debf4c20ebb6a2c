"""Protocol engines: session handling, VFO addressing and per-family command sets."""

from __future__ import annotations

from ..models.capabilities import Family, RigCapabilities
from ..transport.base import Transport
from .ascii_engine import AsciiEngine
from .base import RigEngine
from .icom import CivEngine


def create_engine(
    capabilities: RigCapabilities,
    transport: Transport,
    civ_address: int | None = None,
) -> RigEngine:
    """Build the engine for a model's protocol family."""
    family = capabilities.family
    if family is Family.ICOM:
        return CivEngine(capabilities, transport, address=civ_address)
    if family in (Family.KENWOOD, Family.ELECRAFT, Family.YAESU):
        return AsciiEngine(capabilities, transport)
    raise ValueError(f"Unhandled protocol family: {family}")
