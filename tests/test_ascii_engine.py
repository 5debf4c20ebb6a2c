"""Tests for the ASCII engine with Kenwood, Elecraft and Yaesu dialects."""

from dataclasses import replace

import pytest

from conftest import kenwood_if, yaesu_if
from rigcontrol_mcp.engine import AsciiEngine, create_engine
from rigcontrol_mcp.errors import (
    Busy,
    CommandFailed,
    InvalidParameter,
    InvalidResponse,
    UnsupportedOperation,
)
from rigcontrol_mcp.models import radios
from rigcontrol_mcp.models.mode import Mode
from rigcontrol_mcp.models.receiver import AgcSpeed, NoiseControl
from rigcontrol_mcp.models.tuning import RitXitState
from rigcontrol_mcp.models.vfo import VFO, Band, Target
from rigcontrol_mcp.protocol.dialects import ELECRAFT, KENWOOD, YAESU


def connect(caps, transport):
    engine = AsciiEngine(caps, transport)
    engine.connect()
    transport.writes.clear()
    return engine


def test_factory_picks_dialect(scripted):
    assert create_engine(radios.TS_590SG, scripted).dialect is KENWOOD
    assert create_engine(radios.K3, scripted).dialect is ELECRAFT
    assert create_engine(radios.FT_991A, scripted).dialect is YAESU


def test_handshake_turns_off_auto_information(scripted):
    engine = AsciiEngine(radios.TS_590SG, scripted)
    engine.connect()
    assert scripted.writes == [b"AI0;"]


# ─── Frequency / mode ─────────────────────────────────────────────────


def test_current_frequency_from_status(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(freq=7_074_000))
    assert engine.get_frequency() == 7_074_000
    assert scripted.writes == [b"IF;"]


def test_frequency_of_named_vfo(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"FB00010136000;")
    assert engine.get_frequency(Target(vfo=VFO.B)) == 10_136_000
    assert scripted.writes == [b"FB;"]


def test_set_frequency_on_current_vfo(scripted):
    """The current VFO is read from the status before choosing FA or FB."""
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(vfo="1"))
    engine.set_frequency(21_074_000)
    assert scripted.writes == [b"IF;", b"FB00021074000;"]


def test_set_frequency_confirmed_by_echo(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"FA00014074000;")
    engine.set_frequency(14_074_000, Target(vfo=VFO.A))
    assert scripted.writes == [b"FA00014074000;"]


def test_set_confirmation_mismatch(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"MD3;")
    with pytest.raises(InvalidResponse):
        engine.set_mode(Mode.USB)


def test_yaesu_frequency_width(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"FA145500000;")
    engine.set_frequency(145_500_000, Target(vfo=VFO.A))
    assert scripted.writes == [b"FA145500000;"]
    scripted.queue(yaesu_if(freq=145_500_000))
    assert engine.get_frequency() == 145_500_000


def test_mode_codes_per_dialect(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"MD6;")
    assert engine.get_mode() == Mode.RTTY

    engine = connect(radios.K3, scripted)
    scripted.queue(b"MD6;")
    engine.set_mode(Mode.DATA_USB)
    assert scripted.writes == [b"MD6;"]


def test_yaesu_mode(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"MD0C;")
    assert engine.get_mode() == Mode.DATA_USB
    scripted.queue(b"MD0B;")
    engine.set_mode(Mode.FM_N)
    assert scripted.writes[-1] == b"MD0B;"


def test_elecraft_select_vfo(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"FR1;", b"FT1;")
    engine.select_vfo(VFO.B)
    assert scripted.writes == [b"FR1;", b"FT1;"]
    assert engine.addressing.current == Target(vfo=VFO.B)


def test_yaesu_select_vfo(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"VS1;")
    engine.select_vfo(VFO.B)
    assert scripted.writes == [b"VS1;"]


def test_yaesu_current_vfo_queried(scripted):
    """Yaesu status has no VFO field, so VS; decides between FA and FB."""
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"VS1;")
    engine.select_vfo(VFO.B)
    scripted.queue(b"VS1;", b"FB007100000;")
    engine.set_frequency(7_100_000)
    assert scripted.writes == [b"VS1;", b"VS;", b"FB007100000;"]


def test_current_vfo_falls_back_to_selection(scripted):
    """With no VFO field and no VFO query, the last selection is used."""
    dialect = replace(YAESU, vfo_query=None)
    engine = AsciiEngine(radios.FT_991A, scripted, dialect=dialect)
    engine.connect()
    scripted.queue(b"VS1;")
    engine.select_vfo(VFO.B)
    scripted.writes.clear()

    scripted.queue(yaesu_if(), b"FB007100000;")
    engine.set_frequency(7_100_000)
    assert scripted.writes == [b"IF;", b"FB007100000;"]


def test_band_target_rejected_before_io(scripted):
    engine = connect(radios.TS_590SG, scripted)
    with pytest.raises(UnsupportedOperation):
        engine.get_mode(Target(band=Band.SUB))
    assert scripted.writes == []


# ─── Transmit / split / power ─────────────────────────────────────────


def test_ptt_commands_are_never_answered(scripted):
    """Even a radio that confirms SETs by echo stays silent on TX/RX."""
    engine = connect(radios.K3, scripted)
    engine.set_ptt(True)
    engine.set_ptt(False)
    assert scripted.writes == [b"TX;", b"RX;"]

    engine = connect(radios.TS_590SG, scripted)
    engine.set_ptt(True)
    assert scripted.writes == [b"TX1;"]


def test_ptt_read(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(tx=True))
    assert engine.get_ptt() is True

    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"TX0;")
    assert engine.get_ptt() is False


def test_elecraft_split(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"FR0;", b"FT1;")
    engine.set_split(True)
    assert scripted.writes == [b"FR0;", b"FT1;"]
    scripted.queue(kenwood_if(split=True))
    assert engine.get_split() is True


def test_yaesu_split_query(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"FT1;")
    assert engine.get_split() is True
    assert scripted.writes == [b"FT;"]


def test_power_in_watts(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"PC050;")
    assert engine.get_power() == 50
    engine.set_power(100)
    assert scripted.writes[-1] == b"PC100;"


def test_error_token_is_command_failed(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"?;")
    with pytest.raises(CommandFailed):
        engine.get_power()


def test_elecraft_busy(scripted):
    """On an Elecraft, '?;' means busy rather than rejected."""
    engine = connect(radios.K3, scripted)
    scripted.queue(b"?;")
    with pytest.raises(Busy):
        engine.get_power()


def test_unrelated_reply_skipped(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"FA00014074000;", b"PC075;")
    assert engine.get_power() == 75


# ─── RIT / XIT ────────────────────────────────────────────────────────


def test_absolute_rit_write(scripted):
    engine = connect(radios.TS_590SG, scripted)
    engine.set_rit(RitXitState(enabled=True, offset=-120))
    assert scripted.writes == [b"RC;", b"RD00120;", b"RT1;"]


def test_yaesu_rit_digits(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"RC;", b"RU0250;", b"RT1;")
    engine.set_rit(RitXitState(enabled=True, offset=250))
    assert scripted.writes == [b"RC;", b"RU0250;", b"RT1;"]


def test_rit_read_from_status(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(offset=-120, rit=True))
    assert engine.get_rit() == RitXitState(enabled=True, offset=-120)
    scripted.queue(kenwood_if(offset=-120, rit=True))
    assert engine.get_xit() == RitXitState(enabled=False, offset=-120)


def test_step_rit_rejects_absolute_offset(scripted):
    engine = connect(radios.K3, scripted)
    with pytest.raises(UnsupportedOperation):
        engine.set_rit(RitXitState(enabled=True, offset=20))
    assert scripted.writes == []


def test_step_rit_zero_offset(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"RC;", b"RT1;")
    engine.set_rit(RitXitState(enabled=True, offset=0))
    assert scripted.writes == [b"RC;", b"RT1;"]


def test_step_rit_adjust(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(kenwood_if(), b"RU;", b"RU;", b"RU;")
    engine.adjust_rit(3)
    assert scripted.writes == [b"IF;"] + [b"RU;"] * 3


def test_absolute_rit_adjust(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(offset=100))
    engine.adjust_rit(-2)
    engine.clear_rit()
    assert scripted.writes == [b"IF;", b"RD00002;", b"RC;"]


def test_adjust_rit_past_limit_rejected(scripted):
    """The current offset is read first; a step past the limit sends nothing."""
    engine = connect(radios.K3, scripted)
    scripted.queue(kenwood_if(offset=9980))
    with pytest.raises(InvalidParameter):
        engine.adjust_rit(2)
    assert scripted.writes == [b"IF;"]

    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(kenwood_if(offset=-9999))
    with pytest.raises(InvalidParameter):
        engine.adjust_rit(-1)
    assert scripted.writes == [b"IF;"]


# ─── Meters / VFO operations ──────────────────────────────────────────


def test_s_meter_calibration(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"SM00015;")
    assert str(engine.get_signal_strength()) == "S9"

    engine = connect(radios.K3, scripted)
    scripted.queue(b"SM00114;")
    assert str(engine.get_signal_strength()) == "S9+60"

    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"RM5117000;")
    assert str(engine.get_signal_strength()) == "S9"
    assert scripted.writes == [b"RM5;"]


def test_yaesu_exchange_and_equalize(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"SV;", b"AB;")
    engine.exchange()
    engine.equalize()
    assert scripted.writes == [b"SV;", b"AB;"]


def test_kenwood_has_no_exchange(scripted):
    engine = connect(radios.TS_590SG, scripted)
    with pytest.raises(UnsupportedOperation):
        engine.exchange()
    with pytest.raises(UnsupportedOperation):
        engine.equalize()


def test_identify(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"ID023;")
    assert engine.identify() == "TS-590SG (ID 023)"


# ─── Receiver DSP ─────────────────────────────────────────────────────


def test_yaesu_agc(scripted):
    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"GT03;")
    assert engine.get_agc() is AgcSpeed.SLOW
    scripted.queue(b"GT05;")
    assert engine.get_agc() is AgcSpeed.AUTO
    scripted.queue(b"GT01;")
    engine.set_agc(AgcSpeed.FAST)
    assert scripted.writes == [b"GT0;", b"GT0;", b"GT01;"]


def test_elecraft_agc(scripted):
    engine = connect(radios.K3, scripted)
    scripted.queue(b"GT002;")
    assert engine.get_agc() is AgcSpeed.FAST
    scripted.queue(b"GT004;")
    engine.set_agc(AgcSpeed.SLOW)
    assert scripted.writes[-1] == b"GT004;"


def test_kenwood_has_no_agc(scripted):
    engine = connect(radios.TS_590SG, scripted)
    with pytest.raises(UnsupportedOperation):
        engine.get_agc()
    assert scripted.writes == []


def test_kenwood_noise_reduction_with_level(scripted):
    engine = connect(radios.TS_590SG, scripted)
    engine.set_noise_reduction(NoiseControl(enabled=True, level=5))
    assert scripted.writes == [b"NR1;", b"RL05;"]
    scripted.queue(b"NR2;", b"RL05;")
    assert engine.get_noise_reduction() == NoiseControl(enabled=True, level=5)


def test_noise_blanker(scripted):
    engine = connect(radios.TS_590SG, scripted)
    scripted.queue(b"NB0;")
    assert engine.get_noise_blanker() == NoiseControl(enabled=False)

    engine = connect(radios.FT_991A, scripted)
    scripted.queue(b"NB01;")
    engine.set_noise_blanker(NoiseControl(enabled=True))
    assert scripted.writes == [b"NB01;"]


def test_elecraft_has_no_noise_reduction(scripted):
    engine = connect(radios.K3, scripted)
    with pytest.raises(UnsupportedOperation):
        engine.get_noise_reduction()
