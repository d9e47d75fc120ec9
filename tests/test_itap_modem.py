import time
from unittest import mock

from qnetgate.dstar import DSVT, DstarHeader
from qnetgate.itap_frames import (
    HEADER_ACKNOWLEDGE,
    PING,
    POLL,
    ItapFrame,
    ReplyType,
)
from qnetgate.itap_modem import FrameQueue, ItapSession


def _header_packet():
    header = DstarHeader(
        rpt1="N0CALL B", rpt2="N0CALL G", urcall="CQCQCQ", mycall="N0CALL", sfx="TEST"
    )
    return DSVT(stream_id=0x1234, ctrl=0x80, header=header, config=0x10)


def _radio_header():
    return ItapFrame(
        frame_type=0x10, r1="N0CALL B", r2="N0CALL G", ur="CQCQCQ", my="N0CALL", nm="TEST"
    ).to_bytes()


def _radio_voice(seq):
    return ItapFrame(frame_type=0x12, counter=0, sequence=seq, ambe=bytes(9)).to_bytes()


def _ready_session():
    session = ItapSession("N0CALL", "B", stream_ids=lambda: 0x4321)
    session.handle_reply(ReplyType.PONG, b"\x03\x03\x00")
    return session


def test_queue_sends_one_at_a_time():
    queue = FrameQueue()
    queue.push(b"\x03\x20\x00")
    queue.push(b"\x03\x22\x00")
    assert queue.next_to_send() == b"\x03\x20\x00"
    assert queue.next_to_send() is None
    assert queue.acknowledge(0) is True
    assert queue.next_to_send() == b"\x03\x22\x00"


def test_queue_nonzero_code_keeps_waiting():
    queue = FrameQueue()
    queue.push(b"\x03\x20\x00")
    queue.next_to_send()
    assert queue.acknowledge(1) is True
    assert queue.acknowledged is False


def test_queue_duplicate_acknowledgement():
    queue = FrameQueue()
    assert queue.acknowledge(0) is False


def test_queue_timeout():
    queue = FrameQueue()
    assert queue.timed_out(0.0) is False
    queue.push(b"\x03\x20\x00")
    queue.next_to_send()
    assert queue.timed_out(0.0) is True
    assert queue.timed_out(1000.0) is False


def test_queue_clear():
    queue = FrameQueue()
    queue.push(b"\x03\x20\x00")
    queue.push(b"\x03\x20\x01")
    queue.next_to_send()
    queue.clear()
    assert len(queue) == 0
    assert queue.acknowledged is True
    assert queue.next_to_send() is None


def test_header_reply_acknowledges_and_converts():
    session = ItapSession("N0CALL", "B", stream_ids=lambda: 0x4321)
    out = session.handle_reply(ReplyType.HEADER, _radio_header())
    assert out.to_radio == [HEADER_ACKNOWLEDGE]
    assert out.to_gateway.is_header()
    assert out.to_gateway.stream_id == 0x4321
    assert out.to_gateway.header.mycall == "N0CALL  "


def test_voice_reply_acknowledges_sequence_and_keeps_stream():
    session = ItapSession("N0CALL", "B", stream_ids=lambda: 0x4321)
    session.handle_reply(ReplyType.HEADER, _radio_header())
    out = session.handle_reply(ReplyType.DATA, _radio_voice(7))
    assert out.to_radio == [bytes((0x04, 0x13, 0, 0x00))]
    assert out.to_gateway.stream_id == 0x4321
    assert out.to_gateway.ctrl == 7


def test_pong_initialises():
    session = ItapSession("N0CALL", "B")
    assert session.initialized is False
    out = session.handle_reply(ReplyType.PONG, b"\x03\x03\x00")
    assert session.initialized is True
    assert out.to_radio == []


def test_error_marks_dead_and_reset_revives():
    session = _ready_session()
    session.handle_reply(ReplyType.ERROR, b"")
    assert session.alive is False
    session.reset()
    assert session.alive is True
    assert session.initialized is False


def test_gateway_packets_need_initialised_radio():
    session = ItapSession("N0CALL", "B")
    assert session.queue_gateway(_header_packet().to_bytes()) is False
    assert len(session.queue) == 0


def test_queued_header_is_sent_then_waits_for_ack():
    session = _ready_session()
    assert session.queue_gateway(_header_packet().to_bytes()) is True
    time.sleep(0.005)
    frames = session.poll_frame()
    assert frames[0] == POLL
    header = frames[1]
    assert header[0] == 41 and header[1] == 0x20
    assert session.queue.acknowledged is False
    session.handle_reply(ReplyType.HEADER_ACK, b"\x03\x21\x00")
    assert session.queue.acknowledged is True


def test_voice_counter_restarts_with_header():
    session = _ready_session()
    session.queue_gateway(_header_packet().to_bytes())
    voice = DSVT(stream_id=0x1234, ctrl=1, voice=bytes(9))
    session.queue_gateway(voice.to_bytes())
    session.queue_gateway(voice.to_bytes())
    counters = []
    for _ in range(3):
        frame = session.queue.next_to_send()
        session.queue.acknowledge(0)
        counters.append(ItapFrame.from_bytes(frame).counter if frame[1] == 0x22 else None)
    assert counters == [None, 0, 1]


def test_unacknowledged_frame_kills_session():
    session = _ready_session()
    session.queue_gateway(_header_packet().to_bytes())
    session.poll_frame()
    session.ack_wait = 0.0
    session.poll_frame()
    assert session.alive is False


def test_polls_then_pings():
    session = ItapSession("N0CALL", "B")
    start = time.monotonic()
    sent = []
    for step in range(20):
        with mock.patch("time.monotonic", return_value=start + 2.0 * (step + 1)):
            session.handle_reply(ReplyType.PONG, b"\x03\x03\x00")
            sent.extend(session.poll_frame())
    assert sent[:18] == [POLL] * 18
    assert sent[18:] == [PING, PING]


def test_silent_radio_is_dead():
    session = ItapSession("N0CALL", "B")
    with mock.patch("time.monotonic", return_value=time.monotonic() + 20.0):
        assert session.poll_frame() == []
    assert session.alive is False