"""Tests for the rigctld network front end against a simulated radio."""

import socket
import threading

import pytest

from conftest import SimulatedCivRadio
from rigcontrol_mcp import rigctld
from rigcontrol_mcp.controller import RigController
from rigcontrol_mcp.errors import (
    CommandFailed,
    InvalidParameter,
    NotConnected,
    Timeout,
    UnsupportedOperation,
)
from rigcontrol_mcp.models import radios
from rigcontrol_mcp.models.vfo import VFO, Band
from rigcontrol_mcp.rigctld import ReturnCode, RigctldServer, RigctldSession


@pytest.fixture
def rig(ic7300_radio):
    controller = RigController(radios.IC_7300, ic7300_radio)
    controller.connect()
    yield controller
    controller.disconnect()


@pytest.fixture
def session(rig):
    return RigctldSession(rig)


def test_frequency(session, ic7300_radio):
    assert session.handle("F 7074000\n") == "RPRT 0\n"
    assert ic7300_radio.frequency_of(Band.MAIN, VFO.A) == 7_074_000
    assert session.handle("f") == "7074000\n"
    assert session.handle("\\get_freq") == "7074000\n"


def test_extended_response(session):
    assert session.handle("+\\get_freq") == "get_freq:\nFrequency: 14000000\nRPRT 0\n"
    assert session.handle("+F 7074000") == "set_freq: 7074000\nRPRT 0\n"
    assert session.handle("+m") == "get_mode:\nMode: USB\nPassband: 2400\nRPRT 0\n"


def test_mode_names(session):
    assert session.handle("M RTTYR 500") == "RPRT 0\n"
    assert session.handle("m") == "RTTYR\n500\n"
    assert session.handle("M CW-R") == "RPRT 0\n"
    assert session.handle("m") == "CWR\n500\n"
    assert session.handle("M PKTUSB 2400") == "RPRT -11\n"
    assert session.handle("M NOPE") == "RPRT -1\n"


def test_vfo_selection(session, ic7300_radio):
    assert session.handle("v") == "VFOA\n"
    assert session.handle("V VFOB") == "RPRT 0\n"
    assert ic7300_radio.vfo[Band.MAIN] is VFO.B
    assert session.handle("v") == "VFOB\n"
    assert session.handle("V currVFO") == "RPRT 0\n"
    assert session.handle("v") == "VFOB\n"


def test_band_on_single_receiver_radio(session):
    assert session.handle("V Sub") == "RPRT -11\n"
    assert session.handle("v") == "VFOA\n"


def test_split_uses_other_vfo(session, ic7300_radio):
    ic7300_radio.slots[(Band.MAIN, VFO.B)]["frequency"] = 14_080_000
    assert session.handle("i") == "14080000\n"
    assert session.handle("I 14085000") == "RPRT 0\n"
    assert ic7300_radio.frequency_of(Band.MAIN, VFO.B) == 14_085_000
    assert ic7300_radio.frequency_of(Band.MAIN, VFO.A) == 14_000_000

    assert session.handle("S 1 VFOB") == "RPRT 0\n"
    assert ic7300_radio.split is True
    assert session.handle("s") == "1\nVFOB\n"


def test_split_follows_selected_vfo(session):
    """Split TX is always the VFO the client is not listening on."""
    session.handle("V VFOB")
    assert session.handle("+s") == "get_split_vfo:\nSplit: 0\nTX VFO: VFOA\nRPRT 0\n"


def test_ptt(session, ic7300_radio):
    assert session.handle("T 1") == "RPRT 0\n"
    assert ic7300_radio.ptt is True
    assert session.handle("t") == "1\n"


def test_rit_and_xit(session, ic7300_radio):
    assert session.handle("J 120") == "RPRT 0\n"
    assert ic7300_radio.rit_offset == 120
    assert ic7300_radio.rit_on is True
    assert session.handle("j") == "120\n"
    assert session.handle("J 0") == "RPRT 0\n"
    assert ic7300_radio.rit_on is False
    assert session.handle("j") == "0\n"
    assert session.handle("J 20000") == "RPRT -1\n"


def test_agc_level(session, ic7300_radio):
    assert session.handle("l AGC") == "5\n"  # radio starts at MID
    assert session.handle("L AGC 3") == "RPRT 0\n"
    assert ic7300_radio.functions[0x12] == 0x03
    assert session.handle("l AGC") == "3\n"


def test_agc_level_outside_radio_set(session, ic7300_radio):
    assert session.handle("L AGC 1") == "RPRT -1\n"  # superfast
    assert session.handle("L AGC 0") == "RPRT -1\n"  # IC-7300 has no OFF
    assert ic7300_radio.functions[0x12] == 0x02


def test_power_and_strength_levels(session, ic7300_radio):
    assert session.handle("L RFPOWER 0.5") == "RPRT 0\n"
    assert session.handle("l RFPOWER") == "0.500000\n"
    assert session.handle("L RFPOWER 1.5") == "RPRT -1\n"
    assert session.handle("l STRENGTH") == "-54\n"
    assert session.handle("l SWR") == "RPRT -11\n"


def test_noise_functions(session, ic7300_radio):
    assert session.handle("u NB") == "0\n"
    assert session.handle("U NB 1") == "RPRT 0\n"
    assert ic7300_radio.functions[0x22] == 1
    assert session.handle("u NB") == "1\n"
    assert session.handle("U NR 1") == "RPRT 0\n"
    assert ic7300_radio.functions[0x40] == 1
    assert session.handle("u COMP") == "RPRT -11\n"


def test_vfo_operations(session, ic7300_radio):
    ic7300_radio.slots[(Band.MAIN, VFO.B)]["frequency"] = 7_000_000
    assert session.handle("G XCHG") == "RPRT 0\n"
    assert ic7300_radio.frequency_of(Band.MAIN, VFO.A) == 7_000_000
    assert session.handle("G CPY") == "RPRT 0\n"
    assert ic7300_radio.frequency_of(Band.MAIN, VFO.B) == 7_000_000
    assert session.handle("G UP") == "RPRT -11\n"


def test_power_conversion(session):
    assert session.handle("2 0.5 14074000 USB") == "50000\n"
    assert session.handle("4 25000 14074000 USB") == "0.250000\n"
    assert session.handle("4 500000 14074000 USB") == "1.000000\n"


def test_bad_input(session):
    assert session.handle("y") == "RPRT -8\n"
    assert session.handle("\\no_such_thing") == "RPRT -8\n"
    assert session.handle("F") == "RPRT -1\n"
    assert session.handle("F fourteen") == "RPRT -1\n"
    assert session.handle("+F") == "set_freq:\nRPRT -1\n"
    assert session.handle("") == ""


def test_radio_rejection(session, ic7300_radio):
    ic7300_radio.nak_commands.add(0x05)
    assert session.handle("F 7074000") == "RPRT -9\n"


def test_quit(session):
    assert session.handle("q") is None
    assert session.handle("\\quit") is None


def test_information_commands(session):
    assert session.handle("\\chk_vfo") == "CHKVFO 0\n"
    assert session.handle("_") == "IC-7300\n"

    caps = session.handle("1").splitlines()
    assert caps[0] == "Caps dump for model: IC-7300"
    assert "Get functions: NB NR" in caps
    assert "Set level: AGC RFPOWER" in caps

    state = session.handle("\\dump_state").splitlines()
    assert state[:3] == ["0", "2", "2"]
    assert state[3].startswith("30000 74800000 ")
    assert state[-6:-2] == ["0x202", "0x202", "0x40021000", "0x21000"]


def test_dual_receiver_defaults_to_main():
    """Main/sub radios start on Main and split onto Sub."""
    radio = SimulatedCivRadio(address=0x7A, dual=True)
    with RigController(radios.lookup("IC-7600"), radio) as rig:
        session = RigctldSession(rig)
        assert session.handle("v") == "Main\n"
        assert session.handle("s") == "0\nSub\n"
        assert session.handle("V VFOA") == "RPRT -11\n"


def test_error_codes():
    assert rigctld.return_code(InvalidParameter("x")) is ReturnCode.EINVAL
    assert rigctld.return_code(ValueError("x")) is ReturnCode.EINVAL
    assert rigctld.return_code(Timeout("x")) is ReturnCode.ETIMEOUT
    assert rigctld.return_code(NotConnected()) is ReturnCode.EIO
    assert rigctld.return_code(CommandFailed("x")) is ReturnCode.ERJCTED
    assert rigctld.return_code(UnsupportedOperation("x")) is ReturnCode.ENAVAIL


def test_over_tcp(rig):
    server = RigctldServer(rig, ("127.0.0.1", 0))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        with socket.create_connection(server.server_address, timeout=5) as client:
            client.sendall(b"F 7074000\nf\n+\\get_vfo\nq\n")
            with client.makefile("rb") as stream:
                received = stream.read()
    finally:
        server.shutdown()
        server.server_close()
    assert received.decode("ascii") == "RPRT 0\n7074000\nget_vfo:\nVFO: VFOA\nRPRT 0\n"


def test_main_rejects_unknown_radio():
    assert rigctld.main(["--radio", "FT-1", "--port", "/dev/null"]) == 2


def test_parser_reads_hex_address():
    args = rigctld.build_parser().parse_args(
        ["-r", "IC-7300", "-p", "/dev/ttyUSB0", "-c", "0x94", "-t", "4533"]
    )
    assert args.civ_address == 0x94
    assert args.listen_port == 4533
    assert args.host == "127.0.0.1"


def test_surplus_arguments_ignored(session, ic7300_radio):
    """VFO-mode clients append a VFO name; it is dropped."""
    assert session.handle("f VFOA") == "14000000\n"
    assert session.handle("M CW 500 extra") == "RPRT 0\n"
    assert session.handle("m") == "CW\n500\n"
