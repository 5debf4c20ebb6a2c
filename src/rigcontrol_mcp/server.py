"""MCP server entry point for CAT radio control.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.

The serial port and radio model default to the ``RIGCONTROL_PORT`` and
``RIGCONTROL_RADIO`` environment variables.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

from .controller import RigController
from .errors import NotConnected
from .models import radios
from .models.memory import MemoryChannel
from .models.mode import Mode
from .models.receiver import AgcSpeed, IfFilter, NoiseControl
from .models.tuning import RitXitState
from .models.vfo import Target
from .transport.serial_connection import SerialConfig, SerialConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "rigcontrol",
    instructions="MCP server for CAT control of amateur radio transceivers",
)

# Global connection state
_controller: RigController | None = None


def _get_controller() -> RigController:
    """Get the active controller, raising if not connected."""
    if _controller is None or not _controller.connected:
        raise NotConnected("Not connected to a radio. Use the 'connect' tool first.")
    return _controller


def _target(vfo: str | None) -> Target | None:
    return Target.parse(vfo)


def _rit_dict(state: RitXitState) -> dict[str, Any]:
    return {
        "enabled": state.enabled,
        "offset_hz": state.offset,
        "description": state.description,
    }


def _noise_dict(setting: NoiseControl) -> dict[str, Any]:
    return {
        "enabled": setting.enabled,
        "level": setting.level,
        "description": setting.description,
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def list_radios() -> list[dict[str, Any]]:
    """List the radio models that have built-in capability descriptors."""
    return [
        {
            "name": caps.name,
            "family": caps.family.value,
            "topology": caps.topology.value,
            "frequency_range_hz": list(caps.frequency_range),
            "max_power_w": caps.max_power,
            "modes": sorted(m.value for m in caps.modes),
            "default_baud": caps.default_baud,
        }
        for caps in radios.RADIOS.values()
    ]


@mcp.tool()
def connect(
    radio: str | None = None,
    port: str | None = None,
    baudrate: int | None = None,
    civ_address: int | None = None,
) -> dict[str, Any]:
    """Open the serial port and start controlling a radio.

    Args:
        radio: Model name such as "IC-7300", "K3" or "FT-991A".
            Defaults to $RIGCONTROL_RADIO.
        port: Serial device, e.g. "/dev/ttyUSB0". Defaults to $RIGCONTROL_PORT.
        baudrate: Override the model's default baud rate.
        civ_address: Override the Icom CI-V address.
    """
    global _controller
    if _controller is not None and _controller.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "radio": _controller.capabilities.name,
        }

    radio = radio or os.environ.get("RIGCONTROL_RADIO")
    port = port or os.environ.get("RIGCONTROL_PORT")
    if not radio or not port:
        raise ValueError(
            "Both a radio model and a serial port are required "
            "(or set RIGCONTROL_RADIO and RIGCONTROL_PORT)"
        )

    caps = radios.lookup(radio)
    config = SerialConfig.for_rig(port, caps, baudrate=baudrate)
    controller = RigController(caps, SerialConnection(config), civ_address=civ_address)
    controller.connect()
    _controller = controller
    logger.info("Serving %s on %s", caps.name, config.port)

    return {
        "connected": True,
        "radio": caps.name,
        "port": config.port,
        "baudrate": config.baudrate,
    }


@mcp.tool()
def disconnect() -> dict[str, Any]:
    """Close the connection to the radio."""
    global _controller
    if _controller is None:
        return {"connected": False, "message": "Not connected"}
    try:
        _controller.disconnect()
    finally:
        _controller = None
    return {"connected": False}


# ─── FREQUENCY / MODE TOOLS ───────────────────────────────────────────

@mcp.tool()
def get_frequency(vfo: str | None = None, use_cache: bool = True) -> dict[str, Any]:
    """Read a VFO frequency in Hz.

    Args:
        vfo: "A", "B", "main", "sub", "main-A" ... or omit for the current VFO.
        use_cache: Allow a value read in the last half second.
    """
    rig = _get_controller()
    target = _target(vfo)
    return {"vfo": str(target or "current"), "frequency_hz": rig.frequency(target, use_cache)}


@mcp.tool()
def set_frequency(frequency_hz: int, vfo: str | None = None) -> dict[str, Any]:
    """Tune a VFO to a frequency in Hz."""
    rig = _get_controller()
    target = _target(vfo)
    rig.set_frequency(frequency_hz, target)
    return {"vfo": str(target or "current"), "frequency_hz": frequency_hz}


@mcp.tool()
def get_mode(vfo: str | None = None, use_cache: bool = True) -> dict[str, Any]:
    """Read the operating mode of a VFO."""
    rig = _get_controller()
    target = _target(vfo)
    return {"vfo": str(target or "current"), "mode": rig.mode(target, use_cache).value}


@mcp.tool()
def set_mode(mode: str, vfo: str | None = None) -> dict[str, Any]:
    """Set the operating mode, e.g. "USB", "CW", "FM", "DATA-USB"."""
    rig = _get_controller()
    target = _target(vfo)
    parsed = Mode.parse(mode)
    rig.set_mode(parsed, target)
    return {"vfo": str(target or "current"), "mode": parsed.value}


# ─── TRANSMIT TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def get_ptt() -> dict[str, Any]:
    """Report whether the radio is transmitting."""
    return {"transmitting": _get_controller().ptt()}


@mcp.tool()
def set_ptt(transmit: bool) -> dict[str, Any]:
    """Key or unkey the transmitter."""
    _get_controller().set_ptt(transmit)
    return {"transmitting": transmit}


@mcp.tool()
def get_split() -> dict[str, Any]:
    """Report whether split operation is enabled."""
    return {"split": _get_controller().split()}


@mcp.tool()
def set_split(enabled: bool) -> dict[str, Any]:
    """Enable or disable split (receive and transmit on different VFOs)."""
    _get_controller().set_split(enabled)
    return {"split": enabled}


@mcp.tool()
def get_power() -> dict[str, Any]:
    """Read the RF power setting in watts."""
    rig = _get_controller()
    return {"power_w": rig.power(), "max_power_w": rig.capabilities.max_power}


@mcp.tool()
def set_power(watts: int) -> dict[str, Any]:
    """Set the RF power in watts."""
    _get_controller().set_power(watts)
    return {"power_w": watts}


# ─── RIT / XIT TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def get_rit() -> dict[str, Any]:
    """Read the receiver incremental tuning state."""
    return _rit_dict(_get_controller().rit())


@mcp.tool()
def set_rit(enabled: bool, offset_hz: int = 0) -> dict[str, Any]:
    """Set RIT on/off and its offset in Hz."""
    state = RitXitState(enabled=enabled, offset=offset_hz)
    _get_controller().set_rit(state)
    return _rit_dict(state)


@mcp.tool()
def get_xit() -> dict[str, Any]:
    """Read the transmitter incremental tuning state."""
    return _rit_dict(_get_controller().xit())


@mcp.tool()
def set_xit(enabled: bool, offset_hz: int = 0) -> dict[str, Any]:
    """Set XIT on/off and its offset in Hz (shared with RIT on most radios)."""
    state = RitXitState(enabled=enabled, offset=offset_hz)
    _get_controller().set_xit(state)
    return _rit_dict(state)


# ─── METER / VFO TOOLS ────────────────────────────────────────────────

@mcp.tool()
def get_signal_strength() -> dict[str, Any]:
    """Read the S-meter."""
    signal = _get_controller().signal_strength()
    return {
        "reading": str(signal),
        "s_units": signal.s_units,
        "over_s9_db": signal.over_s9,
        "decibels": signal.decibels,
        "raw": signal.raw,
    }


@mcp.tool()
def select_vfo(vfo: str) -> dict[str, Any]:
    """Make a VFO or receiver current: "A", "B", "main", "sub", "sub-B" ..."""
    rig = _get_controller()
    target = Target.parse(vfo)
    if target is None:
        raise ValueError("Name a VFO or band to select")
    if target.band is not None and target.vfo is not None:
        rig.select_band_vfo(target.band, target.vfo)
    elif target.band is not None:
        rig.select_band(target.band)
    else:
        rig.select_vfo(target.vfo)
    return {"selected": str(target)}


@mcp.tool()
def exchange() -> dict[str, Any]:
    """Swap main and sub receivers (VFO A and B on single-receiver radios)."""
    _get_controller().exchange()
    return {"exchanged": True}


@mcp.tool()
def equalize() -> dict[str, Any]:
    """Copy main to sub (VFO A to B on single-receiver radios)."""
    _get_controller().equalize()
    return {"equalized": True}


# ─── RECEIVER DSP TOOLS ───────────────────────────────────────────────

@mcp.tool()
def get_agc() -> dict[str, Any]:
    """Read the AGC speed."""
    return {"agc": _get_controller().agc().value}


@mcp.tool()
def set_agc(speed: str) -> dict[str, Any]:
    """Set the AGC speed: "off", "fast", "medium", "slow" or "auto"."""
    parsed = AgcSpeed.parse(speed)
    _get_controller().set_agc(parsed)
    return {"agc": parsed.value}


@mcp.tool()
def get_noise_blanker() -> dict[str, Any]:
    """Read the noise blanker switch and level."""
    return _noise_dict(_get_controller().noise_blanker())


@mcp.tool()
def set_noise_blanker(enabled: bool, level: int | None = None) -> dict[str, Any]:
    """Switch the noise blanker, optionally setting its level."""
    setting = NoiseControl(enabled=enabled, level=level)
    _get_controller().set_noise_blanker(setting)
    return _noise_dict(setting)


@mcp.tool()
def get_noise_reduction() -> dict[str, Any]:
    """Read the DSP noise reduction switch and level."""
    return _noise_dict(_get_controller().noise_reduction())


@mcp.tool()
def set_noise_reduction(enabled: bool, level: int | None = None) -> dict[str, Any]:
    """Switch DSP noise reduction, optionally setting its level."""
    setting = NoiseControl(enabled=enabled, level=level)
    _get_controller().set_noise_reduction(setting)
    return _noise_dict(setting)


@mcp.tool()
def get_if_filter(vfo: str | None = None) -> dict[str, Any]:
    """Read the IF filter preset (FIL1 widest, FIL3 narrowest)."""
    rig = _get_controller()
    target = _target(vfo)
    return {"vfo": str(target or "current"), "filter": str(rig.if_filter(target))}


@mcp.tool()
def set_if_filter(preset: str, vfo: str | None = None) -> dict[str, Any]:
    """Select an IF filter preset: "FIL1", "FIL2" or "FIL3"."""
    rig = _get_controller()
    target = _target(vfo)
    slot = IfFilter.parse(preset)
    rig.set_if_filter(slot, target)
    return {"vfo": str(target or "current"), "filter": str(slot)}


# ─── MEMORY TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def memory_channel_count() -> dict[str, Any]:
    """Report how many memory channels the radio has."""
    return {"channels": _get_controller().memory_channel_count()}


@mcp.tool()
def get_memory_channel(number: int) -> dict[str, Any]:
    """Read a memory channel's frequency and mode."""
    return _get_controller().memory_channel(number).to_dict()


@mcp.tool()
def set_memory_channel(number: int, frequency_hz: int, mode: str) -> dict[str, Any]:
    """Store a frequency and mode in a memory channel.

    The current VFO is tuned to the stored values as a side effect.
    """
    channel = MemoryChannel(number=number, frequency=frequency_hz, mode=Mode.parse(mode))
    _get_controller().set_memory_channel(channel)
    return channel.to_dict()


@mcp.tool()
def clear_memory_channel(number: int) -> dict[str, Any]:
    """Erase a memory channel."""
    _get_controller().clear_memory_channel(number)
    return {"number": number, "cleared": True}


@mcp.tool()
def cache_statistics() -> dict[str, Any]:
    """Report state-cache hit/miss counters."""
    return _get_controller().cache_statistics().to_dict()


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("rig://radios")
def radios_resource() -> str:
    """Names of the built-in radio models."""
    return "\n".join(caps.name for caps in radios.RADIOS.values())


@mcp.resource("rig://status")
def status_resource() -> str:
    """Connection status and current VFO state."""
    if _controller is None or not _controller.connected:
        return "Not connected"
    rig = _controller
    return (
        f"{rig.capabilities.name}: {rig.frequency()} Hz {rig.mode().value}, "
        f"topology {rig.capabilities.topology.value}"
    )


# ─── PROMPTS ──────────────────────────────────────────────────────────

@mcp.prompt()
def ft8_setup(band_mhz: str = "14") -> str:
    """Prepare the radio for FT8 on a band."""
    return f"""Set the radio up for FT8 on the {band_mhz} MHz band.
Use set_frequency with the FT8 dial frequency for that band
(e.g. 14074000 for 20 m, 7074000 for 40 m), then set_mode DATA-USB
if the radio supports it (see list_radios), otherwise USB.
Turn split off and RIT off, and set power to a modest level."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    # stdout carries the MCP stream
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
