"""The protocol state of a session with an Icom radio, free of any I/O."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from qnetgate.dstar import DSVT, HEADER_PACKET_SIZE, VOICE_PACKET_SIZE
from qnetgate.itap_frames import (
    HEADER_ACKNOWLEDGE,
    PING,
    POLL,
    ItapFrame,
    ReplyType,
    describe_frame,
    gateway_to_itap,
    itap_to_gateway,
)
from qnetgate.timer import Timer

_log = logging.getLogger(__name__)

DEAD_RADIO_SECONDS = 10.0
POLL_COUNT = 18
FIRST_PING_INTERVAL = 0.001
PING_INTERVAL = 1.0
ACK_WAIT_AP_MODE = 0.4
ACK_WAIT_TERMINAL = 0.06

BytesLike = Union[bytes, bytearray, memoryview]


class FrameQueue:
    """Frames waiting for the radio; one is sent at a time, then acknowledged."""

    def __init__(self) -> None:
        self._frames: deque[bytes] = deque()
        self.acknowledged = True
        self._timer = Timer()

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: Union[BytesLike, ItapFrame]) -> None:
        """Queue a frame for sending."""
        raw = frame.to_bytes() if isinstance(frame, ItapFrame) else bytes(frame)
        self._frames.append(raw)

    def next_to_send(self) -> Optional[bytes]:
        """Take the next frame if the previous one was acknowledged."""
        if not self.acknowledged or not self._frames:
            return None
        self.acknowledged = False
        self._timer.start()
        return self._frames.popleft()

    def acknowledge(self, code: int) -> bool:
        """Record an acknowledgement from the radio; code 0 means success.

        Returns False when nothing was waiting for an acknowledgement.
        """
        if self.acknowledged:
            _log.error("frame already acknowledged")
            return False
        if code == 0:
            self.acknowledged = True
        return True

    def timed_out(self, wait: float) -> bool:
        """Whether the frame sent last has gone unacknowledged for wait seconds."""
        return not self.acknowledged and self._timer.elapsed() >= wait

    def clear(self) -> None:
        """Drop every queued frame and stop waiting for an acknowledgement."""
        self._frames.clear()
        self.acknowledged = True


def _new_stream_id() -> int:
    return random.randint(1, 0xFFFF)


@dataclass
class SessionOutput:
    """What handling one reply produced."""

    to_radio: list[bytes] = field(default_factory=list)
    to_gateway: Optional[DSVT] = None


class ItapSession:
    """Keeps a radio link alive and converts traffic between radio and gateway.

    When alive turns false the caller should reopen the serial port and then
    call reset().
    """

    def __init__(
        self,
        repeater: str,
        module: str,
        ap_mode: bool = False,
        stream_ids: Optional[Callable[[], int]] = None,
    ) -> None:
        if len(module) != 1:
            raise ValueError(f"module must be one character, got {module!r}")
        self.repeater = repeater
        self.module = module
        self.ack_wait = ACK_WAIT_AP_MODE if ap_mode else ACK_WAIT_TERMINAL
        self._stream_ids = stream_ids or _new_stream_id
        self.queue = FrameQueue()
        self.stream_id = 0
        self._counter = 0
        self._ping_timer = Timer()
        self._last_data = Timer()
        self.initialized = False
        self.alive = True
        self._poll_counter = 0
        self._ping_time = FIRST_PING_INTERVAL

    def reset(self) -> None:
        """Return to the state of a freshly opened radio."""
        self._poll_counter = 0
        self._ping_time = FIRST_PING_INTERVAL
        self.initialized = False
        self.alive = True
        self.queue.clear()
        self._last_data.start()
        self._ping_timer.start()

    def handle_reply(self, kind: ReplyType, data: BytesLike) -> SessionOutput:
        """Act on one frame read from the radio."""
        raw = bytes(data)
        out = SessionOutput()
        if kind is ReplyType.ERROR:
            self.alive = False
        elif kind is ReplyType.HEADER:
            out.to_radio.append(HEADER_ACKNOWLEDGE)
            self.stream_id = self._stream_ids()
            out.to_gateway = itap_to_gateway(raw, self.repeater, self.module, self.stream_id)
            self._last_data.start()
        elif kind is ReplyType.DATA:
            out.to_radio.append(bytes((0x04, 0x13, raw[2], 0x00)))
            out.to_gateway = itap_to_gateway(raw, self.repeater, self.module, self.stream_id)
            self._last_data.start()
        elif kind is ReplyType.PONG:
            if not self.initialized:
                _log.info("Icom radio is connected, %d packets in queue", len(self.queue))
                self.initialized = True
            self._last_data.start()
        elif kind is ReplyType.HEADER_ACK:
            self.queue.acknowledge(raw[2])
            self._last_data.start()
        elif kind is ReplyType.DATA_ACK:
            self.queue.acknowledge(raw[3])
            self._last_data.start()
        elif kind is ReplyType.UNKNOWN and raw and raw[0] != 0xFF:
            _log.info("unexpected frame: %s", describe_frame(raw))
        return out

    def queue_gateway(self, data: BytesLike) -> bool:
        """Queue a gateway packet for the radio; return whether it was taken.

        Packets are only taken while the radio is initialised and alive.
        """
        raw = bytes(data)
        if not (self.initialized and self.alive and raw[:4] == b"DSVT"):
            return False
        if len(raw) not in (HEADER_PACKET_SIZE, VOICE_PACKET_SIZE):
            _log.debug("unusual packet size read len=%d", len(raw))
            return False
        try:
            packet = DSVT.from_bytes(raw)
        except ValueError as exc:
            _log.debug("bad gateway packet: %s", exc)
            return False
        if packet.is_header():
            self._counter = 0
        frame = gateway_to_itap(packet, self.module, self._counter)
        if not packet.is_header():
            self._counter = (self._counter + 1) & 0xFF
        self.queue.push(frame)
        return True

    def poll_frame(self) -> list[bytes]:
        """Return the frames due to be written to the radio now.

        This also notices a silent radio or a missing acknowledgement and
        then marks the session as not alive.
        """
        out: list[bytes] = []
        if self._last_data.elapsed() > DEAD_RADIO_SECONDS:
            _log.warning("no activity from radio for %d sec", int(DEAD_RADIO_SECONDS))
            self.alive = False

        if self.alive and self._ping_timer.elapsed() >= self._ping_time:
            if self._poll_counter < POLL_COUNT:
                out.append(POLL)
                self._poll_counter += 1
                if self._poll_counter == POLL_COUNT:
                    self._ping_time = PING_INTERVAL
            else:
                out.append(PING)
            self._ping_timer.start()

        if self.queue.acknowledged:
            if self.initialized and self.alive:
                frame = self.queue.next_to_send()
                if frame is not None:
                    out.append(frame)
        elif self.queue.timed_out(self.ack_wait):
            _log.error("Icom failure suspected")
            self.alive = False
        return out