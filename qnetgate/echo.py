"""Recording and playing back echo test and voicemail streams."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import BinaryIO, Optional, Union

from qnetgate.dstar import (
    CALL_SIZE,
    DSVT,
    HEADER_PACKET_SIZE,
    SYNC,
    DstarHeader,
    with_pfcs,
)
from qnetgate.slowdata import scramble

_log = logging.getLogger(__name__)

VOICE_SIZE = 9
MESSAGE_SIZE = 20
SD_SILENCE = bytes((0x16, 0x29, 0xF5))

PathLike = Union[str, os.PathLike]


def _owner_prefix(owner: str) -> str:
    return owner.upper().ljust(CALL_SIZE)[: CALL_SIZE - 1]


def recording_header(packet: DSVT, owner: str, module: str) -> bytes:
    """Return the 56-byte header stored at the start of a recording.

    The header is addressed from the given module of this gateway to CQCQCQ.
    """
    if packet.header is None:
        raise ValueError("a recording must start with a header packet")
    if len(module) != 1:
        raise ValueError(f"module must be one character, got {module!r}")
    prefix = _owner_prefix(owner)
    hdr = packet.header
    header = DstarHeader(
        flags=hdr.flags,
        rpt1=prefix + module,
        rpt2=prefix + "G",
        urcall="CQCQCQ",
        mycall=hdr.mycall,
        sfx=hdr.sfx,
        pfcs=hdr.pfcs,
    )
    out = DSVT(
        stream_id=packet.stream_id,
        ctrl=packet.ctrl,
        header=header,
        config=packet.config,
        packet_id=packet.packet_id,
        flaga=packet.flaga,
        flagb=packet.flagb,
    )
    return with_pfcs(out.to_bytes())


def _message_text(index: int, message: bytes) -> bytes:
    pair = (index - 1) // 2
    if index % 2:
        return scramble(b"@ABC"[pair:pair + 1] + message[5 * pair:5 * pair + 2])
    return scramble(message[5 * pair + 2:5 * pair + 5])


def playback_packets(data: bytes, message: str = "") -> list[bytes]:
    """Turn a recording into the header and voice packets that replay it.

    The first eight voice frames after the sync carry message as slow data.
    """
    raw = bytes(data)
    if len(raw) < HEADER_PACKET_SIZE + VOICE_SIZE:
        raise ValueError(f"recording is too small: {len(raw)} bytes")
    if (len(raw) - HEADER_PACKET_SIZE) % VOICE_SIZE:
        _log.warning("recording size of %d is unexpected", len(raw))
    blocks = (len(raw) - HEADER_PACKET_SIZE) // VOICE_SIZE

    text = message.encode("latin-1")[:MESSAGE_SIZE].ljust(MESSAGE_SIZE)
    head = DSVT.from_bytes(raw[:HEADER_PACKET_SIZE])
    assert head.header is not None
    head.header.urcall = "CQCQCQ  "
    packets = [with_pfcs(head.to_bytes())]

    for i in range(blocks):
        start = HEADER_PACKET_SIZE + i * VOICE_SIZE
        ctrl = i % 21
        if ctrl == 0:
            slow = SYNC
        elif 1 <= i <= 8:
            slow = _message_text(i, text)
        else:
            slow = SD_SILENCE
        if i + 1 == blocks:
            ctrl |= 0x40
        frame = DSVT(
            stream_id=head.stream_id,
            ctrl=ctrl,
            voice=raw[start:start + VOICE_SIZE],
            text=slow,
            config=0x20,
            packet_id=head.packet_id,
            flaga=head.flaga,
            flagb=head.flagb,
        )
        packets.append(frame.to_bytes())
    return packets


class Recorder:
    """Writes one module's recording: a header followed by voice blocks."""

    def __init__(self, exclusive: bool = False) -> None:
        self.exclusive = exclusive
        self.path: Optional[Path] = None
        self.stream_id = 0
        self.last_time = 0.0
        self._file: Optional[BinaryIO] = None

    @property
    def recording(self) -> bool:
        """Whether a recording is in progress."""
        return self._file is not None

    def start(self, path: PathLike, packet: DSVT, owner: str, module: str) -> None:
        """Open path and write the recording header for packet."""
        if self._file is not None:
            raise RuntimeError(f"already recording into {self.path}")
        header = recording_header(packet, owner, module)
        self._file = open(path, "xb" if self.exclusive else "wb")
        self.path = Path(path)
        self.stream_id = packet.stream_id
        self.last_time = time.time()
        self._file.write(header)

    def append(self, voice: bytes) -> None:
        """Append one frame's voice data."""
        if self._file is None:
            raise RuntimeError("not recording")
        block = bytes(voice)[:VOICE_SIZE]
        if len(block) != VOICE_SIZE:
            raise ValueError(f"voice data must be {VOICE_SIZE} bytes")
        self._file.write(block)
        self.last_time = time.time()

    def close(self) -> Optional[Path]:
        """Finish the recording and return its path."""
        if self._file is not None:
            self._file.close()
            self._file = None
        self.stream_id = 0
        self.last_time = 0.0
        return self.path

    def __enter__(self) -> "Recorder":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()