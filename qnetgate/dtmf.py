"""Detecting DTMF tones in AMBE voice frames and counting stream statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

DTMF_CHARS = "147*2580369#ABCD"
MAX_DTMF_BUF = 32
SILENT_FRAME_CODE = 0xF85
TONE_REPEATS = 5

# Voice data that replaces a frame carrying a DTMF tone.
SILENCE = bytes((0x9E, 0x8D, 0x32, 0x88, 0x26, 0x1A, 0x3F, 0x61, 0xE8))

_TONE_MASK = 0x0FFC
_TONE_PATTERN = 0x0FC0


def dtmf_character(digit: int) -> str:
    """Return the keypad character for a decoded DTMF digit from 0 to 15."""
    if not 0 <= digit < len(DTMF_CHARS):
        raise ValueError(f"DTMF digit out of range: {digit}")
    return DTMF_CHARS[digit]


def _unpack(ber_data: Sequence[int]) -> tuple[int, int, int]:
    if len(ber_data) != 3:
        raise ValueError(f"decoder output must hold 3 values, got {len(ber_data)}")
    first, second, third = ber_data
    return first, second, third


class DtmfCollector:
    """Collects the DTMF digits keyed during one transmission.

    A digit is taken once its tone has been seen in five frames in a row;
    at most 32 digits are kept.
    """

    def __init__(self) -> None:
        self._digits: list[str] = []
        self._last = 0
        self._counter = 0

    @property
    def digits(self) -> str:
        """The digits collected so far."""
        return "".join(self._digits)

    def reset(self) -> None:
        """Forget the collected digits and any tone in progress."""
        self._digits.clear()
        self._last = 0
        self._counter = 0

    def feed(self, ber_data: Sequence[int]) -> bool:
        """Take the decoder output of one voice frame.

        Returns whether the frame carries a DTMF tone, in which case its
        voice data should be replaced with SILENCE.
        """
        first, _, third = _unpack(ber_data)
        if (first & _TONE_MASK) != _TONE_PATTERN:
            self._counter = 0
            return False
        digit = (first & 0x03) | ((third & 0x60) >> 3)
        if self._counter > 0 and self._last != digit:
            self._counter = 0
        self._last = digit
        self._counter += 1
        if self._counter == TONE_REPEATS and len(self._digits) < MAX_DTMF_BUF:
            self._digits.append(dtmf_character(digit))
        return True

    def notify_text(self, mycall: str) -> Optional[str]:
        """Return the notification file contents, or None without digits."""
        if not self._digits:
            return None
        return f"{self.digits}\n{mycall}"


@dataclass
class StreamStats:
    """Frame, silence and bit error counts for one local transmission."""

    frames: int = 0
    silent_frames: int = 0
    bit_errors: int = 0

    def add_frame(self, ber_data: Sequence[int], errors: int) -> None:
        """Account for one voice frame and its decoded bit errors."""
        first, _, _ = _unpack(ber_data)
        if errors < 0:
            raise ValueError(f"bit errors must not be negative: {errors}")
        if first == SILENT_FRAME_CODE:
            self.silent_frames += 1
        self.bit_errors += errors
        self.frames += 1