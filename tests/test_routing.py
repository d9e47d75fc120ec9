import socket

import pytest

from qnetgate.dstar import DSVT, DstarHeader, crc_ccitt
from qnetgate.routing import (
    Command,
    classify_urcall,
    find_index,
    fix_direct_mode,
    zone_route_target,
)

OWNER = "N0CALL"


@pytest.mark.parametrize(
    "urcall, rpt1, rpt2, expected",
    [
        ("/KJ4NHFB", "N0CALL B", "N0CALL G", Command.ZONE_ROUTE),
        ("/N0CALLA", "N0CALL B", "N0CALL G", Command.NONE),
        ("W1AW", "N0CALL A", "N0CALL G", Command.CALLSIGN_ROUTE),
        ("N0CALL", "N0CALL A", "N0CALL G", Command.NONE),
        ("W1AW", "N0CALL D", "N0CALL G", Command.NONE),
        ("W1AW", "N0CALL A", "N0CALL B", Command.NONE),
        ("REF001CL", "N0CALL A", "N0CALL G", Command.NONE),
        ("XLX123AL", "N0CALL A", "N0CALL G", Command.NONE),
        ("      C0", "N0CALL A", "N0CALL G", Command.CLEAR_VOICEMAIL),
        ("      R0", "N0CALL A", "N0CALL G", Command.RECALL_VOICEMAIL),
        ("      S0", "N0CALL A", "N0CALL G", Command.RECORD_VOICEMAIL),
        ("       E", "N0CALL A", "N0CALL G", Command.ECHO_TEST),
        ("CQCQCQ", "N0CALL A", "N0CALL B", Command.CROSS_BAND),
        ("CQCQCQ", "N0CALL A", "N0CALL A", Command.NONE),
        ("CQCQCQ", "N0CALL A", "N0CALL G", Command.NONE),
    ],
)
def test_classify_urcall(urcall, rpt1, rpt2, expected):
    assert classify_urcall(urcall, rpt1, rpt2, OWNER) == expected


def test_classify_owner_case_insensitive():
    assert classify_urcall("W1AW", "N0CALL A", "N0CALL G", "n0call") == Command.CALLSIGN_ROUTE


def _header_packet(rpt1, rpt2, flagb=b"\x00\x01\x00"):
    header = DstarHeader(
        flags=b"\x00\x00\x00",
        rpt1=rpt1,
        rpt2=rpt2,
        urcall="CQCQCQ",
        mycall="W1AW",
        sfx="ID51",
    )
    return DSVT(stream_id=0x1234, ctrl=0x80, header=header, config=0x10, flagb=flagb)


@pytest.mark.parametrize("flag, module", [(0x00, "A"), (0x01, "B"), (0x02, "C"), (0x03, "A")])
def test_fix_direct_mode_readdresses(flag, module):
    packet = _header_packet("DIRECT", "DIRECT", flagb=bytes((0x00, 0x01, flag)))
    fixed = fix_direct_mode(packet, OWNER)
    assert fixed.header.rpt1 == "N0CALL " + module
    assert fixed.header.rpt2 == "N0CALL G"
    raw = fixed.header.to_bytes()
    assert crc_ccitt(raw[:39]).to_bytes(2, "little") == raw[39:41]
    assert fixed.header.mycall == packet.header.mycall
    assert fixed.stream_id == packet.stream_id


def test_fix_direct_mode_leaves_other_headers():
    packet = _header_packet("N0CALL B", "N0CALL G")
    assert fix_direct_mode(packet, OWNER) == packet


def test_fix_direct_mode_rejects_voice():
    with pytest.raises(ValueError):
        fix_direct_mode(DSVT(), OWNER)


def test_zone_route_target():
    assert zone_route_target("/KJ4NHFB") == "KJ4NHF B"
    assert zone_route_target("/KJ4NHF ") == "KJ4NHF A"
    assert zone_route_target("/KJ4NHF") == "KJ4NHF A"


def test_zone_route_target_needs_slash():
    with pytest.raises(ValueError):
        zone_route_target("KJ4NHFB")


def test_find_index_keeps_known_index():
    assert find_index(1, socket.AF_INET6, False) == 1
    assert find_index(0, socket.AF_INET, True) == 0


def test_find_index_from_family():
    assert find_index(-1, socket.AF_INET, True) == 1
    assert find_index(-1, socket.AF_INET, False) == 0
    assert find_index(-1, socket.AF_INET6, True) == 0


def test_find_index_unknown_family():
    assert find_index(-1, socket.AF_UNSPEC, True) is None