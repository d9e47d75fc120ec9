"""Frames exchanged with an Icom radio in terminal or access point mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from qnetgate.dstar import CALL_SIZE, DSVT, DstarHeader, with_pfcs

_log = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

HEADER_FRAME_SIZE = 41
VOICE_FRAME_SIZE = 16
MAX_FRAME_SIZE = 100

TYPE_PONG = 0x03
TYPE_HEADER_IN = 0x10
TYPE_HEADER_ACK_IN = 0x11
TYPE_DATA_IN = 0x12
TYPE_DATA_ACK_IN = 0x13
TYPE_HEADER_OUT = 0x20
TYPE_HEADER_ACK = 0x21
TYPE_DATA_OUT = 0x22
TYPE_DATA_ACK = 0x23

HEADER_TYPES = frozenset({TYPE_HEADER_IN, TYPE_HEADER_OUT})
VOICE_TYPES = frozenset({TYPE_DATA_IN, TYPE_DATA_OUT})

POLL = b"\xff\xff"
PING = b"\x02\x02"
HEADER_ACKNOWLEDGE = b"\x03\x11\x00"


class ReplyType(Enum):
    """What a frame read from the radio turned out to be."""

    TIMEOUT = auto()
    ERROR = auto()
    UNKNOWN = auto()
    HEADER = auto()
    DATA = auto()
    HEADER_ACK = auto()
    DATA_ACK = auto()
    PONG = auto()


def _text_field(name: str, value: str, size: int) -> str:
    if len(value.encode("latin-1")) > size:
        raise ValueError(f"{name} is longer than {size} characters: {value!r}")
    return value.ljust(size)


def _bytes_field(name: str, value: BytesLike, size: int) -> bytes:
    raw = bytes(value)
    if len(raw) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(raw)}")
    return raw


@dataclass
class ItapFrame:
    """One frame of the radio's serial protocol.

    Header frames use flags and the call fields, voice frames use counter,
    sequence, ambe and text, and any other frame carries its body in extra.
    """

    frame_type: int
    flags: bytes = bytes(3)
    r1: str = ""
    r2: str = ""
    ur: str = ""
    my: str = ""
    nm: str = ""
    counter: int = 0
    sequence: int = 0
    ambe: bytes = bytes(9)
    text: bytes = bytes(3)
    extra: bytes = b""

    def __post_init__(self) -> None:
        for name in ("frame_type", "counter", "sequence"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} out of range: {value}")
        self.flags = _bytes_field("flags", self.flags, 3)
        self.ambe = _bytes_field("ambe", self.ambe, 9)
        self.text = _bytes_field("text", self.text, 3)
        self.extra = bytes(self.extra)
        if len(self.extra) + 2 > HEADER_FRAME_SIZE:
            raise ValueError(f"extra data is too long: {len(self.extra)} bytes")
        for name in ("r1", "r2", "ur", "my"):
            setattr(self, name, _text_field(name, getattr(self, name), CALL_SIZE))
        self.nm = _text_field("nm", self.nm, 4)

    @property
    def is_header(self) -> bool:
        """Whether this frame has the header layout."""
        return self.frame_type in HEADER_TYPES

    @property
    def is_voice(self) -> bool:
        """Whether this frame has the voice layout."""
        return self.frame_type in VOICE_TYPES

    def to_bytes(self) -> bytes:
        """Serialise the frame, its length byte first."""
        if self.is_header:
            body = self.flags + "".join(
                (self.r2, self.r1, self.ur, self.my, self.nm)
            ).encode("latin-1")
        elif self.is_voice:
            body = bytes((self.counter, self.sequence)) + self.ambe + self.text
        else:
            body = self.extra
        return bytes((len(body) + 2, self.frame_type)) + body

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "ItapFrame":
        """Parse a frame that starts with its length byte."""
        raw = bytes(data)
        if len(raw) < 2:
            raise ValueError("frame is too short")
        length = raw[0]
        if length < 2 or length > len(raw):
            raise ValueError(f"bad frame length {length} for {len(raw)} bytes")
        frame_type = raw[1]
        if frame_type in HEADER_TYPES:
            if length != HEADER_FRAME_SIZE:
                raise ValueError(f"header frame must be {HEADER_FRAME_SIZE} bytes")
            return _parse_header(raw, frame_type)
        if frame_type in VOICE_TYPES:
            if length != VOICE_FRAME_SIZE:
                raise ValueError(f"voice frame must be {VOICE_FRAME_SIZE} bytes")
            return _parse_voice(raw, frame_type)
        return cls(frame_type=frame_type, extra=raw[2:length])


def _parse_header(raw: bytes, frame_type: int) -> ItapFrame:
    text = raw.decode("latin-1")
    return ItapFrame(
        frame_type=frame_type,
        flags=raw[2:5],
        r2=text[5:13],
        r1=text[13:21],
        ur=text[21:29],
        my=text[29:37],
        nm=text[37:41],
    )


def _parse_voice(raw: bytes, frame_type: int) -> ItapFrame:
    return ItapFrame(
        frame_type=frame_type,
        counter=raw[2],
        sequence=raw[3],
        ambe=raw[4:13],
        text=raw[13:16],
    )


def reply_type(data: BytesLike) -> ReplyType:
    """Classify a frame read from the radio."""
    raw = bytes(data)
    if not raw or raw[0] == 0xFF:
        return ReplyType.TIMEOUT
    if raw[0] >= MAX_FRAME_SIZE:
        return ReplyType.ERROR
    if len(raw) < 2:
        return ReplyType.UNKNOWN
    return {
        TYPE_PONG: ReplyType.PONG,
        TYPE_HEADER_IN: ReplyType.HEADER,
        TYPE_DATA_IN: ReplyType.DATA,
        TYPE_HEADER_ACK: ReplyType.HEADER_ACK,
        TYPE_DATA_ACK: ReplyType.DATA_ACK,
    }.get(raw[1], ReplyType.UNKNOWN)


def _cstr(raw: bytes, width: int) -> str:
    return raw[:width].split(b"\0", 1)[0].decode("latin-1").rjust(width)


def describe_frame(data: BytesLike) -> str:
    """Return a one-line human-readable account of a radio frame."""
    raw = bytes(data)
    if not raw:
        raise ValueError("empty frame")
    if raw[0] > HEADER_FRAME_SIZE:
        return f"UNKNOWN: length={raw[0]}"
    d = raw[: raw[0]].ljust(HEADER_FRAME_SIZE, b"\0")
    kind = d[1]
    if kind == TYPE_PONG:
        return "Pong"
    if kind in HEADER_TYPES:
        return (
            f"Header ur={_cstr(d[21:29], 8)} r1={_cstr(d[13:21], 8)} "
            f"r2={_cstr(d[5:13], 8)} my={_cstr(d[29:37], 8)}/{_cstr(d[37:41], 4)}"
        )
    if kind in VOICE_TYPES:
        flags = "".join(f"{b:02d}" for b in d[2:5])
        ambe = "".join(f"{b:02d}" for b in d[4:13])
        text = "".join(f"{b:02d}" for b in d[13:16])
        return f"Data count={d[2]}  seq={d[3]} f={flags} a={ambe} t={text}"
    if kind in (TYPE_HEADER_ACK_IN, TYPE_HEADER_ACK):
        return f"Header acknowledgement code={d[2]:02d}"
    if kind in (TYPE_DATA_ACK_IN, TYPE_DATA_ACK):
        return f"Data acknowledgement seq={d[2]:02d} code={d[3]:02d}"
    return f"UNKNOWN packet buf[0] = 0x{d[0]:02d}"


def gateway_to_itap(packet: DSVT, module: str, counter: int) -> ItapFrame:
    """Convert a gateway packet into the frame to queue for the radio.

    A header whose rpt2 names this module has rpt1 and rpt2 swapped. A voice
    frame carries counter, which the caller restarts at zero on each header.
    """
    if packet.header is not None:
        hdr = packet.header
        if hdr.rpt2[7] == module:
            r1, r2 = hdr.rpt2, hdr.rpt1
        else:
            r1, r2 = hdr.rpt1, hdr.rpt2
        return ItapFrame(
            frame_type=TYPE_HEADER_OUT,
            flags=hdr.flags,
            r1=r1,
            r2=r2,
            ur=hdr.urcall,
            my=hdr.mycall,
            nm=hdr.sfx,
        )
    if (packet.ctrl & ~0x40 & 0xFF) > 20:
        _log.debug("unexpected voice sequence number %d", packet.ctrl)
    return ItapFrame(
        frame_type=TYPE_DATA_OUT,
        counter=counter & 0xFF,
        sequence=packet.ctrl,
        ambe=packet.voice,
        text=packet.text,
    )


def _terminal_urcall(ur: str) -> str:
    if ur[2] == " " and ur[0] != " ":
        # short commands arrive left-justified and must be right-justified
        if ur[1] == " ":
            return " " * 7 + ur[0]
        return " " * 6 + ur[:2]
    return ur


def itap_to_gateway(data: BytesLike, repeater: str, module: str, stream_id: int) -> DSVT:
    """Convert a header or voice frame from the radio into a gateway packet.

    A header addressed to DIRECT (terminal mode) is readdressed to this
    repeater's module and gateway.
    """
    raw = bytes(data)
    if len(raw) < 2:
        raise ValueError("frame is too short")
    is_header = raw[1] == TYPE_HEADER_IN
    size = HEADER_FRAME_SIZE if is_header else VOICE_FRAME_SIZE
    if len(raw) < size:
        raise ValueError(f"frame must be {size} bytes, got {len(raw)}")
    if len(module) != 1:
        raise ValueError(f"module must be one character, got {module!r}")
    flagb = bytes((0x00, 0x01, {"B": 0x01, "C": 0x02}.get(module, 0x03)))
    common = dict(stream_id=stream_id, flaga=bytes(3), packet_id=0x20, flagb=flagb)

    if not is_header:
        frame = _parse_voice(raw[:size], TYPE_DATA_IN)
        return DSVT(
            ctrl=frame.sequence,
            voice=frame.ambe,
            text=frame.text,
            config=0x20,
            **common,
        )

    frame = _parse_header(raw[:size], TYPE_HEADER_IN)
    flags = bytearray(frame.flags)
    if frame.r1.startswith("DIRECT"):
        own = repeater.upper().ljust(CALL_SIZE)[: CALL_SIZE - 1]
        rpt1, rpt2 = own + module, own + "G"
        urcall = _terminal_urcall(frame.ur)
    else:
        rpt1, rpt2, urcall = frame.r1, frame.r2, frame.ur
        flags[0] &= ~0x40 & 0xFF
    header = DstarHeader(
        flags=bytes(flags),
        rpt1=rpt1,
        rpt2=rpt2,
        urcall=urcall,
        mycall=frame.my,
        sfx=frame.nm,
    )
    packet = DSVT(ctrl=0x80, header=header, config=0x10, **common)
    return DSVT.from_bytes(with_pfcs(packet.to_bytes()))