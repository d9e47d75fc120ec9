"""Decoding of the slow-data channel carried in D-STAR voice frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from qnetgate.dstar import DstarHeader, crc_ccitt, is_sync

_log = logging.getLogger(__name__)

_MASK = (0x70, 0x4F, 0x93)
_CR = 0x0D
_TYPE_GPS = 0x30
_TYPE_MESSAGE = 0x40
_TYPE_HEADER = 0x50
_HEADER_SIZE = DstarHeader.SIZE

BytesLike = Union[bytes, bytearray, memoryview]


def scramble(data: BytesLike) -> bytes:
    """Apply the slow-data scrambling pattern to three bytes."""
    raw = bytes(data)
    if len(raw) != 3:
        raise ValueError(f"slow data must be 3 bytes, got {len(raw)}")
    return bytes(b ^ m for b, m in zip(raw, _MASK))


def descramble(data: BytesLike) -> bytes:
    """Remove the slow-data scrambling pattern from three bytes."""
    return scramble(data)


def printable(data: BytesLike) -> str:
    """Decode data up to its first NUL, replacing unprintable bytes with '?'."""
    raw = bytes(data).split(b"\0", 1)[0]
    return "".join(chr(b) if 0x20 <= b <= 0x7E else "?" for b in raw)


@dataclass(frozen=True)
class GpsSentence:
    """A complete GPS sentence received as slow data."""

    text: str


@dataclass(frozen=True)
class TextMessage:
    """A complete 20-character user message received as slow data."""

    text: str


@dataclass(frozen=True)
class SlowHeader:
    """A radio header with a valid checksum received as slow data."""

    header: DstarHeader


SlowDataEvent = Union[GpsSentence, TextMessage, SlowHeader]


class SlowDataDecoder:
    """Reassembles GPS, message and header blocks from voice-frame slow data.

    Headers are only collected when decode_header is true, which is the case
    for streams that cannot be matched to a known header.
    """

    def __init__(self, decode_header: bool = False) -> None:
        self.decode_header = decode_header
        self._header = bytearray(_HEADER_SIZE + 8)
        self._message = bytearray(24)
        self._gps = bytearray(260)
        self._ih = self._im = self._ig = 0
        self._type = 0
        self._size = 0
        self._first = True

    def reset(self) -> None:
        """Forget any partly collected blocks."""
        self._ih = self._im = self._ig = 0
        self._first = True

    def feed(self, text: BytesLike) -> Optional[SlowDataEvent]:
        """Take the three slow-data bytes of one voice frame.

        Returns a completed item, or None.
        """
        if is_sync(text):
            self._first = True
            return None
        c = descramble(text)
        if self._first:
            return self._first_frame(c)
        return self._second_frame(c)

    def _gps_done(self, end: int) -> GpsSentence:
        return GpsSentence(printable(self._gps[:end]))

    def _first_frame(self, c: bytes) -> Optional[SlowDataEvent]:
        self._size = min(c[0] & 0x0F, 5)
        n = min(self._size, 2)
        self._type = c[0] & 0xF0
        event: Optional[SlowDataEvent] = None
        if self._type == _TYPE_GPS:
            if self._size + self._ig < 255:
                self._gps[self._ig:self._ig + n] = c[1:1 + n]
                if c[1] == _CR or c[2] == _CR:
                    end = self._ig + (0 if c[1] == _CR else 1)
                    event = self._gps_done(end)
                    self._ig = self._size = 0
                else:
                    self._ig += n
                    self._size -= n
            else:
                _log.warning("GPS string is too large at %d bytes", self._ig + self._size)
                self._ig = self._size = 0
            self._first = False
        elif self._type == _TYPE_MESSAGE:
            if self._size * 5 == self._im:
                self._message[self._im:self._im + 2] = c[1:3]
                self._im += 2
                self._size = 3
            else:
                self._im = self._size = 0
            self._first = False
        elif self._type == _TYPE_HEADER:
            if self.decode_header:
                if self._size + self._ih < _HEADER_SIZE + 1:
                    self._header[self._ih:self._ih + n] = c[1:1 + n]
                    self._ih += n
                    if self._ih == _HEADER_SIZE:
                        event = self._check_header()
                else:
                    self._ih = self._size = 0
            self._first = False
        return event

    def _check_header(self) -> Optional[SlowHeader]:
        raw = bytes(self._header[:_HEADER_SIZE])
        if crc_ccitt(raw[:39]).to_bytes(2, "little") != raw[39:41]:
            return None
        self._ih = self._size = 0
        return SlowHeader(DstarHeader.from_bytes(raw))

    def _second_frame(self, c: bytes) -> Optional[SlowDataEvent]:
        self._first = True
        if self._size == 0:
            return None
        if self._type == _TYPE_GPS:
            count = min(self._size, 3)
            self._gps[self._ig:self._ig + count] = c[:count]
            if _CR in c:
                end = self._ig + c.index(_CR)
                self._ig = 0
                return self._gps_done(end)
            self._ig += self._size
            self._gps[self._ig] = 0
        elif self._type == _TYPE_MESSAGE:
            self._message[self._im:self._im + 3] = c
            self._im += 3
            if self._im >= 20:
                self._message[20] = 0
                self._im = 0
                return TextMessage(printable(self._message[:20]))
        elif self._type == _TYPE_HEADER:
            if self.decode_header:
                self._header[self._ih:self._ih + 3] = c
                self._ih += 3
        return None


class SmartGroupParser:
    """Extracts the smart group name from a ``VIA SMARTGP`` slow-data message."""

    _PREFIX = b"VIA SMARTGP "

    def __init__(self) -> None:
        self._part = 0
        self._txt = bytearray(21)

    def reset(self) -> None:
        """Abandon any message in progress."""
        self._part = 0

    def feed(self, text: BytesLike) -> Optional[str]:
        """Take one frame's slow data; return the group name once complete."""
        if is_sync(text):
            self._part = 0
            return None
        c = descramble(text)
        if self._part:
            if self._part % 2:
                start = 5 * (self._part // 2) + 2
                self._txt[start:start + 3] = c
                self._part += 1
                if self._part > 7:
                    self._part = 0
                    group = ""
                    if self._txt.startswith(self._PREFIX):
                        group = bytes(self._txt[12:]).split(b"\0", 1)[0].decode("latin-1")
                    return group if len(group) >= 8 else None
            else:
                sequence = self._part // 2
                self._part += 1
                if (sequence | 0x40) == c[0]:
                    self._txt[5 * sequence:5 * sequence + 2] = c[1:3]
                else:
                    self._part = 0
        elif c[0] == 0x40:
            self._txt[0:2] = c[1:3]
            self._txt[2:] = bytes(19)
            self._part = 1
        return None