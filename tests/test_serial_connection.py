"""Tests for the pyserial transport with the port replaced by a fake."""

import pytest
import serial

from rigcontrol_mcp.errors import TransportError
from rigcontrol_mcp.models import radios
from rigcontrol_mcp.transport.serial_connection import SerialConfig, SerialConnection


class FakeSerial:
    """Stands in for serial.Serial and records how it was opened."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.timeout = kwargs.get("timeout")
        self.is_open = True
        self.written = b""
        self.incoming = b""
        self.resets = 0
        FakeSerial.instances.append(self)

    def close(self):
        self.is_open = False

    def reset_input_buffer(self):
        self.resets += 1
        self.incoming = b""

    def reset_output_buffer(self):
        pass

    def write(self, data):
        self.written += data
        return len(data)

    def flush(self):
        pass

    def read_until(self, expected):
        index = self.incoming.find(expected)
        if index < 0:
            data, self.incoming = self.incoming, b""
        else:
            data, self.incoming = self.incoming[: index + 1], self.incoming[index + 1:]
        return data


@pytest.fixture
def fake_serial(monkeypatch):
    FakeSerial.instances = []
    monkeypatch.setattr(serial, "Serial", FakeSerial)
    return FakeSerial


def test_config_from_descriptor():
    config = SerialConfig.for_rig("/dev/ttyUSB0", radios.FT_991A)
    assert config.baudrate == 38400
    assert config.stopbits == 2
    assert config.rtscts is False
    assert SerialConfig.for_rig("COM3", radios.TS_590SG).rtscts is True
    assert SerialConfig.for_rig("COM3", radios.IC_7300, baudrate=9600).baudrate == 9600


def test_open_line_settings(fake_serial):
    conn = SerialConnection(SerialConfig.for_rig("/dev/ttyUSB0", radios.FT_991A))
    conn.open()
    kwargs = fake_serial.instances[0].kwargs
    assert kwargs["port"] == "/dev/ttyUSB0"
    assert kwargs["baudrate"] == 38400
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_TWO
    assert conn.connected


def test_open_failure(monkeypatch):
    def refuse(**kwargs):
        raise serial.SerialException("could not open port")

    monkeypatch.setattr(serial, "Serial", refuse)
    conn = SerialConnection(SerialConfig("/dev/missing"))
    with pytest.raises(TransportError) as excinfo:
        conn.open()
    assert isinstance(excinfo.value, ConnectionError)
    assert isinstance(excinfo.value.__cause__, serial.SerialException)
    assert not conn.connected


def test_write_and_read(fake_serial):
    with SerialConnection(SerialConfig("/dev/ttyUSB0")) as conn:
        port = fake_serial.instances[0]
        conn.write(b"FA;")
        assert port.written == b"FA;"
        port.incoming = b"FA00014074000;FB"
        assert conn.read_until(ord(";"), timeout=0.2) == b"FA00014074000;"
        assert port.timeout == 0.2
        assert conn.read_until(ord(";"), timeout=0.2) == b"FB"
    assert not conn.connected


def test_flush_resets_buffers(fake_serial):
    conn = SerialConnection(SerialConfig("/dev/ttyUSB0"))
    conn.open()
    conn.flush()
    assert fake_serial.instances[0].resets == 1


def test_io_requires_open(fake_serial):
    conn = SerialConnection(SerialConfig("/dev/ttyUSB0"))
    with pytest.raises(TransportError):
        conn.write(b"FA;")
    conn.close()


def test_write_failure_wrapped(fake_serial):
    conn = SerialConnection(SerialConfig("/dev/ttyUSB0"))
    conn.open()

    def broken(data):
        raise serial.SerialException("device disconnected")

    fake_serial.instances[0].write = broken
    with pytest.raises(TransportError):
        conn.write(b"FA;")
