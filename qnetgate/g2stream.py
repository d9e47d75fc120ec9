"""Keeping a voice stream from a remote gateway in sequence."""

from __future__ import annotations

import dataclasses
import logging

from qnetgate.dstar import DSVT, SYNC

_log = logging.getLogger(__name__)

FRAMES_PER_SUPERFRAME = 21
MAX_FILL = 5

QUIET_VOICE = bytes((0x9E, 0x8D, 0x32, 0x88, 0x26, 0x1A, 0x3F, 0x61, 0xE8))
SILENT_TEXT = bytes((0x70, 0x4F, 0x93))

_SYNC_SYMBOLS = "#abcdefghijklmnopqrstuvwxyz"
_DATA_SYMBOLS = "!ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def superframe_symbol(ctrl: int, sync: bool) -> str:
    """Return the one-character trace symbol for a voice frame's sequence."""
    seq = ctrl & 0x1F
    if sync:
        return _SYNC_SYMBOLS[seq] if seq < len(_SYNC_SYMBOLS) else "%"
    return _DATA_SYMBOLS[seq] if seq < len(_DATA_SYMBOLS) else "*"


class VoiceSequencer:
    """Renumbers incoming voice frames and fills short gaps with silence."""

    def __init__(self) -> None:
        self.next_ctrl = 0

    def reset(self) -> None:
        """Start expecting sequence number zero, as after a new header."""
        self.next_ctrl = 0

    def _filler(self, packet: DSVT) -> DSVT:
        ctrl = self.next_ctrl
        self.next_ctrl = (self.next_ctrl + 1) % FRAMES_PER_SUPERFRAME
        return dataclasses.replace(
            packet,
            header=None,
            ctrl=ctrl,
            voice=QUIET_VOICE,
            text=SILENT_TEXT if ctrl else SYNC,
        )

    def process(self, packet: DSVT) -> list[DSVT]:
        """Take one voice packet; return the packets to pass on, in order.

        Up to five missing frames are replaced with silence. A larger gap
        resynchronises on the incoming packet. The closing frame is always
        passed on.
        """
        out: list[DSVT] = []
        seq = packet.ctrl & 0x1F
        diff = seq - self.next_ctrl
        if diff:
            if diff < 0:
                diff += FRAMES_PER_SUPERFRAME
            if diff <= MAX_FILL:
                _log.debug("inserting %d missing voice frame(s)", diff)
                out.extend(self._filler(packet) for _ in range(diff))
            else:
                _log.debug("missing %d packets from voice stream, resetting", diff)
                self.next_ctrl = packet.ctrl

        if self.next_ctrl == seq or packet.is_end():
            if packet.is_end():
                ctrl = self.next_ctrl | 0x40
            else:
                ctrl = self.next_ctrl
                self.next_ctrl = (self.next_ctrl + 1) % FRAMES_PER_SUPERFRAME
            out.append(dataclasses.replace(packet, ctrl=ctrl))
        else:
            _log.debug(
                "ignoring packet because its ctrl=0x%02x and next ctrl=0x%02x",
                packet.ctrl,
                self.next_ctrl,
            )
        return out