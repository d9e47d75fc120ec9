"""Reading and writing frames on the serial line of an Icom radio."""

from __future__ import annotations

import logging
import os
from typing import Protocol, Union

import serial

from qnetgate.itap_frames import MAX_FRAME_SIZE, ItapFrame, ReplyType, reply_type

_log = logging.getLogger(__name__)

BAUD_RATE = 38400
READ_TIMEOUT = 1.0
END_OF_FRAME = b"\xff"

FrameLike = Union[bytes, bytearray, memoryview, ItapFrame]


class SerialPort(Protocol):
    """The part of a serial port that the reader needs."""

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> int | None: ...

    def close(self) -> None: ...


def open_serial(device: Union[str, os.PathLike]) -> serial.Serial:
    """Open device raw at 38400 baud, eight data bits, no parity or flow control."""
    return serial.Serial(
        port=os.fspath(device),
        baudrate=BAUD_RATE,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=READ_TIMEOUT,
        xonxoff=False,
        rtscts=False,
    )


class ItapReader:
    """Frames the byte stream to and from the radio.

    Every frame starts with its length byte; a lone 0xFF is filler.
    """

    def __init__(self, port: SerialPort) -> None:
        self.port = port

    def read_frame(self) -> tuple[ReplyType, bytes]:
        """Read one frame and classify it.

        Returns the kind of reply and the bytes read. A read error, an
        impossible length, or a frame that stops arriving part way through
        is reported as ReplyType.ERROR.
        """
        try:
            first = self.port.read(1)
        except OSError as exc:
            _log.error("error when reading first byte from the Icom radio: %s", exc)
            return ReplyType.ERROR, b""
        if not first:
            return ReplyType.TIMEOUT, b""
        length = first[0]
        if length == 0xFF:
            return ReplyType.TIMEOUT, bytes(first)
        if length >= MAX_FRAME_SIZE:
            _log.error("invalid data received from the Icom radio, length=%d", length)
            return ReplyType.ERROR, bytes(first)

        buf = bytearray(first)
        while len(buf) < length:
            try:
                chunk = self.port.read(length - len(buf))
            except OSError as exc:
                _log.error("error when reading buffer from the Icom radio: %s", exc)
                return ReplyType.ERROR, bytes(buf)
            if not chunk:
                _log.error("the Icom radio stopped part way through a frame")
                return ReplyType.ERROR, bytes(buf)
            buf.extend(chunk)
        data = bytes(buf)
        return reply_type(data), data

    def send(self, frame: FrameLike) -> bool:
        """Write frame followed by the 0xFF terminator; return whether it went."""
        raw = frame.to_bytes() if isinstance(frame, ItapFrame) else bytes(frame)
        if not raw:
            raise ValueError("empty frame")
        length = 2 if raw[0] == 0xFF else raw[0]
        if length > len(raw):
            raise ValueError(f"frame claims {length} bytes but holds {len(raw)}")
        try:
            self.port.write(raw[:length])
            self.port.write(END_OF_FRAME)
        except OSError as exc:
            _log.error("error writing to the Icom radio: %s", exc)
            return False
        return True

    def close(self) -> None:
        """Close the serial port."""
        self.port.close()

    def __enter__(self) -> "ItapReader":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()