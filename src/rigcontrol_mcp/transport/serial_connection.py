"""Serial-port connection to a radio's CAT interface.

Uses ``pyserial``. CAT links are 8 data bits, no parity; stop bits and
hardware flow control depend on the model (some Yaesu rigs need two
stop bits, some Kenwood rigs RTS/CTS).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import serial

from ..errors import TransportError
from ..models.capabilities import RigCapabilities

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0


@dataclass(frozen=True)
class SerialConfig:
    """Serial line settings."""

    port: str
    baudrate: int = 9600
    stopbits: int = 1
    rtscts: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def for_rig(
        cls,
        port: str,
        capabilities: RigCapabilities,
        baudrate: int | None = None,
    ) -> SerialConfig:
        """Line settings for a model, optionally overriding its default baud rate."""
        return cls(
            port=port,
            baudrate=baudrate or capabilities.default_baud,
            stopbits=capabilities.stop_bits,
            rtscts=capabilities.hardware_flow_control,
            timeout=capabilities.quirks.response_timeout,
        )


class SerialConnection:
    """Owns one serial port for the lifetime of a rig session.

    Usage::

        conn = SerialConnection(SerialConfig("/dev/ttyUSB0", 19200))
        conn.open()
        conn.write(frame_bytes)
        reply = conn.read_until(0xFD, timeout=1.0)
        conn.close()
    """

    def __init__(self, config: SerialConfig) -> None:
        self._config = config
        self._serial: serial.Serial | None = None

    @property
    def config(self) -> SerialConfig:
        return self._config

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open the port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        if self.connected:
            return
        cfg = self._config
        try:
            self._serial = serial.Serial(
                port=cfg.port,
                baudrate=cfg.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_TWO if cfg.stopbits == 2 else serial.STOPBITS_ONE,
                rtscts=cfg.rtscts,
                timeout=cfg.timeout,
                write_timeout=cfg.timeout,
            )
        except (serial.SerialException, ValueError) as e:
            raise TransportError(
                f"Could not open {cfg.port} at {cfg.baudrate} baud. "
                f"Check the port name and permissions. Last error: {e}"
            ) from e

        logger.info(
            "Opened %s at %d baud, 8N%d%s",
            cfg.port,
            cfg.baudrate,
            cfg.stopbits,
            " RTS/CTS" if cfg.rtscts else "",
        )

    def close(self) -> None:
        """Close the port. Safe to call more than once."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing %s: %s", self._config.port, e)
        finally:
            self._serial = None
            logger.info("Closed %s", self._config.port)

    def flush(self) -> None:
        """Discard anything buffered in either direction."""
        port = self._require_open()
        try:
            port.reset_input_buffer()
            port.reset_output_buffer()
        except serial.SerialException as e:
            raise TransportError(f"Flush failed on {self._config.port}: {e}") from e

    def write(self, data: bytes) -> None:
        port = self._require_open()
        logger.debug("TX %s", data.hex(" ").upper())
        try:
            port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Write failed on {self._config.port}: {e}") from e

    def read_until(self, terminator: int, timeout: float) -> bytes:
        """Read up to and including ``terminator``.

        Returns whatever arrived if ``timeout`` expires first; an empty
        result means the radio said nothing.
        """
        port = self._require_open()
        try:
            port.timeout = timeout
            data = port.read_until(bytes([terminator]))
        except serial.SerialException as e:
            raise TransportError(f"Read failed on {self._config.port}: {e}") from e
        if data:
            logger.debug("RX %s", data.hex(" ").upper())
        return bytes(data)

    def __enter__(self) -> SerialConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _require_open(self) -> serial.Serial:
        if self._serial is None or not self._serial.is_open:
            raise TransportError(f"Serial port {self._config.port} is not open")
        return self._serial
