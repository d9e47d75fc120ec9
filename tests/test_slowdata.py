import pytest

from qnetgate.dstar import SYNC, DstarHeader, crc_ccitt
from qnetgate.slowdata import (
    GpsSentence,
    SlowDataDecoder,
    SlowHeader,
    SmartGroupParser,
    TextMessage,
    descramble,
    printable,
    scramble,
)


def message_frames(message: bytes):
    assert len(message) == 20
    frames = []
    for k in range(4):
        block = message[5 * k:5 * k + 5]
        frames.append(scramble(bytes((0x40 | k,)) + block[:2]))
        frames.append(scramble(block[2:5]))
    return frames


def typed_frames(kind: int, data: bytes, pad: bytes = b"f"):
    frames = []
    for start in range(0, len(data), 5):
        block = data[start:start + 5]
        padded = block + pad * (5 - len(block))
        frames.append(scramble(bytes((kind | len(block),)) + padded[:2]))
        frames.append(scramble(padded[2:5]))
    return frames


def feed_all(decoder, frames):
    return [e for e in (decoder.feed(f) for f in frames) if e is not None]


def test_scramble_round_trip():
    data = b"abc"
    assert descramble(scramble(data)) == data


def test_scramble_pattern_of_zeros():
    assert scramble(bytes(3)) == b"\x70\x4f\x93"


def test_scramble_rejects_wrong_length():
    with pytest.raises(ValueError):
        scramble(b"ab")


def test_printable_replaces_control_bytes():
    assert printable(b"AB\x01C") == "AB?C"


def test_printable_stops_at_nul():
    assert printable(b"ABC\0DEF") == "ABC"


def test_message_decoding():
    text = b"HELLO FROM THE RADIO"
    events = feed_all(SlowDataDecoder(), message_frames(text))
    assert events == [TextMessage(text.decode())]


def test_message_with_sync_in_stream():
    text = b"HELLO FROM THE RADIO"
    frames = message_frames(text)
    frames.insert(4, SYNC)
    events = feed_all(SlowDataDecoder(), frames)
    assert events == [TextMessage(text.decode())]


def test_message_out_of_order_is_dropped():
    frames = message_frames(b"HELLO FROM THE RADIO")
    del frames[2:4]
    assert feed_all(SlowDataDecoder(), frames) == []


def test_gps_sentence_decoding():
    sentence = b"$GPRMC,1,2,3*00"
    events = feed_all(SlowDataDecoder(), typed_frames(0x30, sentence + b"\r"))
    assert events == [GpsSentence(sentence.decode())]


def test_gps_sentence_ending_in_first_frame():
    sentence = b"ABCDEFG"
    events = feed_all(SlowDataDecoder(), typed_frames(0x30, sentence + b"\r"))
    assert events == [GpsSentence("ABCDEFG")]


def make_header() -> bytes:
    header = DstarHeader(
        flags=b"\x00\x00\x00",
        rpt1="N7TAE  G",
        rpt2="N7TAE  B",
        urcall="CQCQCQ",
        mycall="W1AW",
        sfx="ID51",
    )
    raw = header.to_bytes()
    return raw[:39] + crc_ccitt(raw[:39]).to_bytes(2, "little")


def test_header_decoding():
    raw = make_header()
    events = feed_all(SlowDataDecoder(decode_header=True), typed_frames(0x50, raw))
    assert len(events) == 1
    assert isinstance(events[0], SlowHeader)
    assert events[0].header.to_bytes() == raw


def test_header_ignored_without_flag():
    raw = make_header()
    assert feed_all(SlowDataDecoder(), typed_frames(0x50, raw)) == []


def test_header_bad_checksum_is_dropped():
    raw = bytearray(make_header())
    raw[40] ^= 0xFF
    events = feed_all(SlowDataDecoder(decode_header=True), typed_frames(0x50, bytes(raw)))
    assert events == []


def test_reset_discards_partial_message():
    decoder = SlowDataDecoder()
    frames = message_frames(b"HELLO FROM THE RADIO")
    feed_all(decoder, frames[:3])
    decoder.reset()
    assert feed_all(decoder, frames[3:]) == []


def test_smartgroup_parser_finds_group():
    parser = SmartGroupParser()
    results = [r for r in (parser.feed(f) for f in message_frames(b"VIA SMARTGP XRF012 A")) if r]
    assert results == ["XRF012 A"]


def test_smartgroup_parser_ignores_other_messages():
    parser = SmartGroupParser()
    results = [parser.feed(f) for f in message_frames(b"HELLO FROM THE RADIO")]
    assert all(r is None for r in results)


def test_smartgroup_parser_sync_resets():
    parser = SmartGroupParser()
    frames = message_frames(b"VIA SMARTGP XRF012 A")
    frames.insert(3, SYNC)
    results = [parser.feed(f) for f in frames]
    assert all(r is None for r in results)


def test_smartgroup_parser_reset():
    parser = SmartGroupParser()
    frames = message_frames(b"VIA SMARTGP XRF012 A")
    for f in frames[:4]:
        parser.feed(f)
    parser.reset()
    results = [parser.feed(f) for f in frames[4:]]
    assert all(r is None for r in results)