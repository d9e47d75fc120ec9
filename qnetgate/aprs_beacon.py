"""Building the position beacons that a gateway sends to the APRS network."""

from __future__ import annotations

import math
import struct

APRS_HASH_SEED = 0x73E2
CALL_SIZE = 8
MODULES = "ABC"
MODULE_BANDS = ("23cm", "70cm", "2m")


def _f32(value: float) -> float:
    """Round value to single precision, as the beacon arithmetic is done."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _padded_owner(owner: str) -> str:
    return owner.upper().ljust(CALL_SIZE)[:CALL_SIZE]


def aprs_hash(owner: str) -> int:
    """Return the APRS-IS passcode for the gateway callsign owner.

    The callsign is taken up to its first space once padded to eight
    characters; an eight-character callsign therefore has no passcode.
    """
    padded = _padded_owner(owner)
    if " " not in padded:
        raise ValueError(f"cannot build an aprs hash for {owner!r}")
    sign = padded[: padded.index(" ")].encode("latin-1") + b"\0"
    value = APRS_HASH_SEED
    for i in range(0, len(sign) - 1, 2):
        value ^= sign[i] << 8
        value ^= sign[i + 1]
        value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _degrees_minutes(value: float) -> float:
    magnitude = _f32(abs(value))
    degrees = _f32(math.floor(magnitude))
    return _f32(_f32(_f32(magnitude - degrees) * 60.0) + _f32(degrees * 100.0))


def format_latitude(value: float) -> str:
    """Format a latitude in degrees as APRS ``DDMM.mm`` plus N or S."""
    if not -90.0 <= value <= 90.0:
        raise ValueError(f"latitude out of range: {value}")
    lat = _degrees_minutes(value)
    if lat >= 1000.0:
        digits = f"{lat:.2f}"
    elif lat >= 100.0:
        digits = f"0{lat:.2f}"
    elif lat >= 10.0:
        digits = f"00{lat:.2f}"
    else:
        digits = f"000{lat:.2f}"
    return digits + ("S" if value < 0.0 else "N")


def format_longitude(value: float) -> str:
    """Format a longitude in degrees as APRS ``DDDMM.mm`` plus E or W."""
    if not -180.0 <= value <= 180.0:
        raise ValueError(f"longitude out of range: {value}")
    lon = _degrees_minutes(value)
    if lon >= 10000.0:
        digits = f"{lon:.2f}"
    elif lon >= 1000.0:
        digits = f"0{lon:.2f}"
    elif lon >= 100.0:
        digits = f"00{lon:.2f}"
    elif lon >= 10.0:
        digits = f"000{lon:.2f}"
    else:
        digits = f"0000{lon:.2f}"
    return digits + ("W" if value < 0.0 else "E")


def beacon_text(
    call: str,
    latitude: float,
    longitude: float,
    range_m: float,
    band: str,
    version: str,
) -> str:
    """Return the beacon for one repeater module, without the line ending."""
    if range_m < 0:
        raise ValueError(f"range must not be negative: {range_m}")
    return (
        f"{call}>APJI23,TCPIP*,qAC,{call}S:!"
        f"{format_latitude(latitude)}D{format_longitude(longitude)}"
        f"&RNG{int(range_m):04d} {band} {version}"
    )


def module_calls(owner: str) -> tuple[str, str, str]:
    """Return the APRS callsigns of modules A, B and C of gateway owner."""
    base = _padded_owner(owner).rstrip()
    return tuple(f"{base}-{module}" for module in MODULES)  # type: ignore[return-value]