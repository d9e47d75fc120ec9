# qnetgate

Building blocks for a D-STAR repeater gateway. The package works on the
packets that pass between local repeater modules (A, B, C), remote gateways
and an Icom radio in terminal or access-point mode. Everything except the
serial port helper is free of I/O, so the pieces can be driven from any
event loop and tested directly.

It depends on `pyserial` for the serial link to the radio.

## Modules

- **`qnetgate.dstar`**: the 56-byte DSVT header packet and 27-byte voice
  packet (`DSVT`, with `to_bytes`, `from_bytes`, `is_header`, `is_end`), the
  41-byte radio header (`DstarHeader`), the header checksum (`crc_ccitt`,
  and `with_pfcs`, which returns a 56 or 58 byte packet with its checksum
  filled in), sync detection (`is_sync`) and the accepted header flags
  (`flag_is_ok`: normal, break, emergency, emergency with break).
- **`qnetgate.callsigns`**: MYCALL validation (`is_valid_mycall`), padding to
  the eight-character field (`pad_callsign`), splitting a delimited list into
  a set of padded callsigns, skipping entries not 3 to 8 characters long
  with a logged warning (`unpack_callsigns`), and rendering such a set as
  `key = [A,B,...]` (`format_callsign_list`).
- **`qnetgate.slowdata`**: the slow-data scrambling pattern (`scramble`,
  `descramble`), `printable`, and `SlowDataDecoder`, which takes the three
  slow-data bytes of each voice frame and returns a `GpsSentence`,
  `TextMessage` or `SlowHeader` (only when built with `decode_header=True`)
  once one is complete. `SmartGroupParser` pulls the group name out of a
  `VIA SMARTGP` message.
- **`qnetgate.g2stream`**: `VoiceSequencer.process` renumbers an incoming
  voice stream, inserts up to five silent frames for a gap, resynchronises on
  larger gaps and always passes the closing frame; `superframe_symbol` gives
  the one-character trace symbol of a frame.
- **`qnetgate.echo`**: `Recorder` writes a recording (a readdressed header
  from `recording_header`, then 9-byte voice blocks); `playback_packets`
  turns a recording back into a header and voice packets, carrying a
  20-character message in the slow data of the first frames.
- **`qnetgate.aprs_beacon`**: the APRS-IS passcode (`aprs_hash`), position
  formatting (`format_latitude`, `format_longitude`), the beacon line
  (`beacon_text`) and the module callsigns `CALL-A`, `CALL-B`, `CALL-C`
  (`module_calls`).
- **`qnetgate.routing`**: `classify_urcall` maps the urcall, rpt1 and rpt2
  fields of a local header to a `Command` (zone route, callsign route,
  voicemail clear/recall/record, echo test, cross-band or none);
  `fix_direct_mode` readdresses a `DIRECT` header to this gateway;
  `zone_route_target` reads the repeater out of a `/CALLSGNM` urcall;
  `find_index` picks the network a module's traffic is reported on.
- **`qnetgate.dtmf`**: `DtmfCollector` gathers DTMF digits from decoded
  voice frames (a tone must repeat five frames, at most 32 digits kept) and
  formats the notification text; `StreamStats` counts frames, silent frames
  and bit errors; `dtmf_character` maps a digit to its keypad character.
- **`qnetgate.itap_frames`**: the radio's frame layout (`ItapFrame`), reply
  classification (`ReplyType`, `reply_type`), a readable dump
  (`describe_frame`) and conversion between radio frames and gateway
  packets (`gateway_to_itap`, `itap_to_gateway`).
- **`qnetgate.itap_reader`**: `open_serial` opens the port raw at 38400
  baud; `ItapReader` reads length-prefixed frames (`read_frame`, returning
  the reply type and bytes) and writes them followed by `0xFF` (`send`).
- **`qnetgate.itap_modem`**: `FrameQueue` sends one frame at a time and
  waits for its acknowledgement; `ItapSession` keeps the link alive with
  polls and pings, answers the radio's headers and voice frames, converts
  them for the gateway (`handle_reply`), queues gateway packets
  (`queue_gateway`) and says what to write next (`poll_frame`). When its
  `alive` flag drops, reopen the port and call `reset`.
- **`qnetgate.timer`** and **`qnetgate.text`**: a monotonic stopwatch
  (`Timer`, with `start` and `elapsed`) and whitespace trimming (`ltrim`,
  `rtrim`, `trim`).

## Examples

Fill in the checksum of a header packet and parse it:

```python
from qnetgate.dstar import DSVT, with_pfcs

packet = with_pfcs(raw_header)          # raw_header: 56 bytes from a modem
dsvt = DSVT.from_bytes(packet)
if dsvt.is_header():
    print(dsvt.header.mycall, dsvt.to_bytes() == packet)
```

Validate and pad callsigns:

```python
from qnetgate.callsigns import is_valid_mycall, pad_callsign, unpack_callsigns

is_valid_mycall("N0CALL  ")             # True
pad_callsign("n0call")                  # "N0CALL  "
unpack_callsigns("n0call,n1call", ",")  # {"N0CALL  ", "N1CALL  "}
```

Decode the slow data of a voice stream, three bytes per frame:

```python
from qnetgate.slowdata import SlowDataDecoder

decoder = SlowDataDecoder()
for frame in voice_frames:              # the 27-byte voice packets of one stream
    result = decoder.feed(frame[24:27])
    if result is not None:
        print(result)
```

Build an APRS beacon for module B:

```python
from qnetgate.aprs_beacon import aprs_hash, beacon_text, module_calls

calls = module_calls("N0CALL")
text = beacon_text(calls[1], 35.5, -80.25, 32186, "70cm", "qnetgate-0.1.0")
code = aprs_hash("N0CALL")
```

Drive an Icom radio:

```python
from qnetgate.itap_modem import ItapSession
from qnetgate.itap_reader import ItapReader, open_serial

session = ItapSession("N0CALL", "C")
with ItapReader(open_serial("/dev/ttyUSB0")) as reader:
    while session.alive:
        for frame in session.poll_frame():
            reader.send(frame)
        kind, data = reader.read_frame()
        out = session.handle_reply(kind, data)
        for frame in out.to_radio:
            reader.send(frame)
        if out.to_gateway is not None:
            forward(out.to_gateway.to_bytes())
```

## What it does not do

The package is a library and has no command to run. It does not contain a
gateway daemon: it opens no sockets to remote gateways or to other local
processes, does not connect to an ircDDB network or to APRS-IS, keeps no
last-heard database, and does not decode AMBE audio (`DtmfCollector` and
`StreamStats` take decoder output supplied by the caller). Those parts are
left to the program that uses these building blocks.