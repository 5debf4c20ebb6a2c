"""CAT control of amateur radio transceivers, with an MCP server front end."""

from .controller import Operation, RigController
from .errors import (
    Busy,
    CommandFailed,
    InvalidParameter,
    InvalidResponse,
    NotConnected,
    RigError,
    Timeout,
    TransportError,
    UnsupportedOperation,
)
from .models import (
    VFO,
    AgcSpeed,
    Band,
    IfFilter,
    MemoryChannel,
    Mode,
    NoiseControl,
    RigCapabilities,
    RitXitState,
    SignalStrength,
    Target,
)

__version__ = "0.1.0"
