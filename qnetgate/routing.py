"""Deciding what a header coming from a local module asks the gateway to do."""

from __future__ import annotations

import dataclasses
import socket
from enum import Enum, auto
from typing import Optional

from qnetgate.dstar import CALL_SIZE, DSVT, with_pfcs

_REFLECTOR_PREFIXES = ("XLX", "XRF", "REF", "DCS")
_MODULES = "ABC"


class Command(Enum):
    """What the urcall field of a local header asks for."""

    NONE = auto()
    ZONE_ROUTE = auto()
    CALLSIGN_ROUTE = auto()
    CLEAR_VOICEMAIL = auto()
    RECALL_VOICEMAIL = auto()
    RECORD_VOICEMAIL = auto()
    ECHO_TEST = auto()
    CROSS_BAND = auto()


_SPECIAL = {
    "      C0": Command.CLEAR_VOICEMAIL,
    "      R0": Command.RECALL_VOICEMAIL,
    "      S0": Command.RECORD_VOICEMAIL,
    "       E": Command.ECHO_TEST,
}


def _field(value: str) -> str:
    return value.ljust(CALL_SIZE)[:CALL_SIZE]


def _owner7(owner: str) -> str:
    return owner.upper().ljust(CALL_SIZE)[: CALL_SIZE - 1]


def classify_urcall(urcall: str, rpt1: str, rpt2: str, owner: str) -> Command:
    """Classify a local header by its urcall, rpt1 and rpt2 fields.

    The caller is expected to have checked the header flag and, for the
    routing commands, that mycall is valid.
    """
    ur, r1, r2 = _field(urcall), _field(rpt1), _field(rpt2)
    own = _owner7(owner)
    local_to_gateway = (
        r1[:7] == own and r1[7] in _MODULES and r2[:7] == own and r2[7] == "G"
    )

    if (
        not ur.startswith(_REFLECTOR_PREFIXES)
        and ur[0] != " "
        and not ur.startswith("CQCQCQ")
    ):
        if ur[0] == "/" and local_to_gateway:
            return Command.ZONE_ROUTE if ur[1:7] != own[:6] else Command.NONE
        if ur[:7] != own and local_to_gateway:
            return Command.CALLSIGN_ROUTE
        return Command.NONE

    special = _SPECIAL.get(ur)
    if special is not None:
        return special

    if (
        ur.startswith("CQCQCQ")
        and r1[:7] == own
        and r2[:7] == own
        and r1[7] in _MODULES
        and r2[7] in _MODULES
        and r1[7] != r2[7]
    ):
        return Command.CROSS_BAND
    return Command.NONE


def fix_direct_mode(packet: DSVT, owner: str) -> DSVT:
    """Readdress a terminal-mode header to this gateway.

    A header whose rpt1 or rpt2 starts with DIRECT is given rpt1 of this
    gateway with the module chosen by the third flagb byte, and rpt2 of
    this gateway's G port; its checksum is recomputed. Other packets are
    returned unchanged.
    """
    if packet.header is None:
        raise ValueError("direct mode applies to header packets only")
    hdr = packet.header
    if not (hdr.rpt1.startswith("DIRECT") or hdr.rpt2.startswith("DIRECT")):
        return packet
    module = {0x01: "B", 0x02: "C"}.get(packet.flagb[2], "A")
    own = _owner7(owner)
    header = dataclasses.replace(hdr, rpt1=own + module, rpt2=own + "G")
    fixed = dataclasses.replace(packet, header=header)
    return DSVT.from_bytes(with_pfcs(fixed.to_bytes()))


def zone_route_target(urcall: str) -> str:
    """Return the repeater addressed by a ``/CALLSGNM`` urcall.

    A missing module letter means module A.
    """
    ur = _field(urcall)
    if ur[0] != "/":
        raise ValueError(f"not a zone route: {urcall!r}")
    module = "A" if ur[7].isspace() else ur[7]
    return ur[1:7] + " " + module


def find_index(index: int, link_family: int, has_second: bool) -> Optional[int]:
    """Choose the network connection to report a module's traffic on.

    A known index is used as it is; otherwise an IPv4 link prefers the
    second network when there is one, and an IPv6 link uses the first.
    """
    if index >= 0:
        return index
    if link_family == socket.AF_INET:
        return 1 if has_second else 0
    if link_family == socket.AF_INET6:
        return 0
    return None