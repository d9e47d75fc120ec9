"""Callsign validation, padding and list handling."""

from __future__ import annotations

import logging
import re
from typing import Iterable

CALL_SIZE = 8

_log = logging.getLogger(__name__)

_MYCALL = re.compile(r"[A-PR-Z0-9][A-Z0-9]?[0-9]{1,2}[A-Z]{1,4} {0,4}[ A-Z]")


def is_valid_mycall(call: str) -> bool:
    """Whether call looks like a real operator's callsign."""
    return _MYCALL.fullmatch(call) is not None


def pad_callsign(call: str) -> str:
    """Upper-case call and pad or cut it to the eight-character field width."""
    return call.upper().ljust(CALL_SIZE)[:CALL_SIZE]


def _tokens(text: str, delimiters: str) -> Iterable[str]:
    token: list[str] = []
    for ch in text:
        if ch in delimiters:
            if token:
                yield "".join(token)
                token = []
        else:
            token.append(ch)
    if token:
        yield "".join(token)


def unpack_callsigns(text: str, delimiters: str = ",") -> set[str]:
    """Split text on delimiters into a set of padded, upper-case callsigns.

    Entries shorter than three or longer than eight characters are skipped
    with a warning.
    """
    calls: set[str] = set()
    for element in _tokens(text, delimiters):
        if 3 <= len(element) <= CALL_SIZE:
            calls.add(pad_callsign(element))
        else:
            _log.warning("found bad callsign in list: %s", text)
    return calls


def format_callsign_list(key: str, calls: Iterable[str]) -> str:
    """Render calls, sorted, as ``key = [A,B,...]``."""
    return f"{key} = [{','.join(sorted(calls))}]"