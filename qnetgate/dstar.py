"""D-STAR gateway (DSVT) packet layout and header checksum."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

SYNC = b"\x55\x2d\x16"
CALL_SIZE = 8
HEADER_PACKET_SIZE = 56
VOICE_PACKET_SIZE = 27

_PREFIX_SIZE = 15
_PFCS_SPANS = {56: (15, 54), 58: (17, 56)}
_OK_FLAGS = frozenset({0x00, 0x08, 0x20, 0x28})

BytesLike = Union[bytes, bytearray, memoryview]


def _build_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        crc = n
        for _ in range(8):
            crc = (crc >> 1) ^ 0x8408 if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_table()


def crc_ccitt(data: BytesLike) -> int:
    """Return the D-STAR header checksum of data."""
    crc = 0xFFFF
    for byte in bytes(data):
        crc = (crc >> 8) ^ _CRC_TABLE[(crc ^ byte) & 0xFF]
    return ~crc & 0xFFFF


def with_pfcs(packet: BytesLike) -> bytes:
    """Return a copy of a 56 or 58 byte header packet with its checksum set.

    Packets of any other length are returned unchanged.
    """
    buf = bytearray(packet)
    span = _PFCS_SPANS.get(len(buf))
    if span is None:
        return bytes(buf)
    low, high = span
    buf[high:high + 2] = crc_ccitt(buf[low:high]).to_bytes(2, "little")
    return bytes(buf)


def is_sync(text: BytesLike) -> bool:
    """Whether the slow-data bytes of a voice frame are the sync pattern."""
    return bytes(text[:3]) == SYNC


def flag_is_ok(flag: int) -> bool:
    """Whether a first header flag is normal, break, emergency or both."""
    return flag in _OK_FLAGS


def _pad_text(name: str, value: str, size: int) -> str:
    if len(value.encode("latin-1")) > size:
        raise ValueError(f"{name} is longer than {size} characters: {value!r}")
    return value.ljust(size)


def _check_bytes(name: str, value: BytesLike, size: int) -> bytes:
    raw = bytes(value)
    if len(raw) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(raw)}")
    return raw


@dataclass
class DstarHeader:
    """The 41-byte radio header carried inside a DSVT header packet."""

    SIZE: ClassVar[int] = 41

    flags: bytes = b"\x00\x00\x00"
    rpt1: str = ""
    rpt2: str = ""
    urcall: str = ""
    mycall: str = ""
    sfx: str = ""
    pfcs: bytes = b"\x00\x00"

    def __post_init__(self) -> None:
        self.flags = _check_bytes("flags", self.flags, 3)
        self.pfcs = _check_bytes("pfcs", self.pfcs, 2)
        self.rpt1 = _pad_text("rpt1", self.rpt1, CALL_SIZE)
        self.rpt2 = _pad_text("rpt2", self.rpt2, CALL_SIZE)
        self.urcall = _pad_text("urcall", self.urcall, CALL_SIZE)
        self.mycall = _pad_text("mycall", self.mycall, CALL_SIZE)
        self.sfx = _pad_text("sfx", self.sfx, 4)

    def to_bytes(self) -> bytes:
        """Serialise to the 41-byte wire form."""
        return b"".join(
            (
                self.flags,
                self.rpt1.encode("latin-1"),
                self.rpt2.encode("latin-1"),
                self.urcall.encode("latin-1"),
                self.mycall.encode("latin-1"),
                self.sfx.encode("latin-1"),
                self.pfcs,
            )
        )

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "DstarHeader":
        """Parse the 41-byte wire form."""
        raw = bytes(data)
        if len(raw) != cls.SIZE:
            raise ValueError(f"header must be {cls.SIZE} bytes, got {len(raw)}")
        text = raw.decode("latin-1")
        return cls(
            flags=raw[0:3],
            rpt1=text[3:11],
            rpt2=text[11:19],
            urcall=text[19:27],
            mycall=text[27:35],
            sfx=text[35:39],
            pfcs=raw[39:41],
        )


@dataclass
class DSVT:
    """A DSVT packet: a 56-byte header packet or a 27-byte voice packet."""

    stream_id: int = 0
    ctrl: int = 0
    header: Optional[DstarHeader] = None
    voice: bytes = bytes(9)
    text: bytes = bytes(3)
    config: int = 0x20
    packet_id: int = 0x20
    flaga: bytes = bytes(3)
    flagb: bytes = bytes(3)

    def __post_init__(self) -> None:
        self.voice = _check_bytes("voice", self.voice, 9)
        self.text = _check_bytes("text", self.text, 3)
        self.flaga = _check_bytes("flaga", self.flaga, 3)
        self.flagb = _check_bytes("flagb", self.flagb, 3)
        if not 0 <= self.stream_id <= 0xFFFF:
            raise ValueError(f"stream id out of range: {self.stream_id}")
        for name in ("ctrl", "config", "packet_id"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} out of range: {value}")

    def is_header(self) -> bool:
        """Whether this is a header packet."""
        return self.header is not None

    def is_end(self) -> bool:
        """Whether the end-of-stream bit is set in ctrl."""
        return bool(self.ctrl & 0x40)

    def to_bytes(self) -> bytes:
        """Serialise to 56 bytes for a header packet or 27 for voice."""
        prefix = b"".join(
            (
                b"DSVT",
                bytes((self.config,)),
                self.flaga,
                bytes((self.packet_id,)),
                self.flagb,
                self.stream_id.to_bytes(2, "big"),
                bytes((self.ctrl,)),
            )
        )
        if self.header is not None:
            return prefix + self.header.to_bytes()
        return prefix + self.voice + self.text

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "DSVT":
        """Parse a 56-byte header packet or a 27-byte voice packet."""
        raw = bytes(data)
        if len(raw) not in (HEADER_PACKET_SIZE, VOICE_PACKET_SIZE):
            raise ValueError(f"DSVT packet must be 56 or 27 bytes, got {len(raw)}")
        if raw[:4] != b"DSVT":
            raise ValueError("packet does not start with DSVT")
        fields = dict(
            config=raw[4],
            flaga=raw[5:8],
            packet_id=raw[8],
            flagb=raw[9:12],
            stream_id=int.from_bytes(raw[12:14], "big"),
            ctrl=raw[14],
        )
        body = raw[_PREFIX_SIZE:]
        if len(raw) == HEADER_PACKET_SIZE:
            return cls(header=DstarHeader.from_bytes(body), **fields)
        return cls(voice=body[:9], text=body[9:12], **fields)