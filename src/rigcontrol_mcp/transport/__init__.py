"""Transports: the byte-stream interface and its pyserial implementation."""

from .base import Transport
from .serial_connection import SerialConfig, SerialConnection
