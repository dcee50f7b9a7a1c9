"""
Canonical encodings of a 64-bit fingerprint.

- Mode.HEX: minimal lower-case hex digits, no prefix, no zero padding.
- Mode.DECIMAL: the signed 64-bit reading of the raw bit pattern, so values
  with the top bit set come out negative (this is how hashes were persisted
  by earlier versions and must stay readable).

decode(encode(x, mode), mode) == x for every x in [0, 2**64 - 1].
"""

from __future__ import annotations

import operator
import re
import struct
from enum import Enum
from typing import Union

from errors import MalformedHashError

BITS = 64
MASK64 = (1 << BITS) - 1
SIGN_BIT = 1 << (BITS - 1)
HEX_WIDTH = BITS // 4

EncodedHash = Union[str, int]

_HEX_RE = re.compile(r"[0-9a-fA-F]{1,16}")
_DEC_RE = re.compile(r"-?[0-9]{1,20}")


class Mode(str, Enum):
    """Encoding of hashes produced and consumed by one ImageHash instance."""

    HEX = "hex"
    DECIMAL = "dec"


def to_signed64(raw: int) -> int:
    """Reinterpret an unsigned 64-bit value as two's-complement signed."""
    return raw - (1 << BITS) if raw & SIGN_BIT else raw


def to_unsigned64(value: int) -> int:
    """Bit pattern of a signed or unsigned 64-bit value as an unsigned int."""
    return value & MASK64


def _check_raw(raw: int) -> int:
    # numpy integer scalars (e.g. uint64) are accepted through __index__.
    if isinstance(raw, bool):
        raise MalformedHashError("Raw hash must be an int, got bool")
    try:
        raw = operator.index(raw)
    except TypeError:
        raise MalformedHashError(
            f"Raw hash must be an int, got {type(raw).__name__}"
        ) from None
    if not 0 <= raw <= MASK64:
        raise MalformedHashError(f"Raw hash out of 64-bit range: {raw}")
    return raw


def encode(raw: int, mode: Mode = Mode.HEX) -> EncodedHash:
    """
    Render a raw 64-bit hash in the given mode.

    Raises:
        MalformedHashError: if raw is not an int in [0, 2**64 - 1].
    """
    raw = _check_raw(raw)
    if Mode(mode) is Mode.HEX:
        return format(raw, "x")
    return to_signed64(raw)


def hexdec(value: str) -> int:
    """
    Parse a validated hex string into an unsigned 64-bit int.

    A full-width string whose first nibble is above 8 is read as two
    big-endian unsigned 32-bit words, so the sign bit never goes through a
    signed parse.
    """
    if len(value) == HEX_WIDTH and int(value[0], 16) > 8:
        higher, lower = struct.unpack(">II", bytes.fromhex(value))
        return (higher << 32) | lower
    return int(value, 16)


def _decode_hex(value: EncodedHash) -> int:
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        raise MalformedHashError(f"Not a valid hex hash: {value!r}")
    return hexdec(value)


def _decode_decimal(value: EncodedHash) -> int:
    if isinstance(value, bool):
        raise MalformedHashError(f"Not a valid decimal hash: {value!r}")
    if isinstance(value, str):
        if not _DEC_RE.fullmatch(value):
            raise MalformedHashError(f"Not a valid decimal hash: {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise MalformedHashError(f"Not a valid decimal hash: {value!r}")
    if not -SIGN_BIT <= value <= MASK64:
        raise MalformedHashError(f"Decimal hash out of 64-bit range: {value}")
    return to_unsigned64(value)


def decode(value: EncodedHash, mode: Mode = Mode.HEX) -> int:
    """
    Recover the raw unsigned 64-bit value from an encoded hash.

    Raises:
        MalformedHashError: if value is not a valid encoding for mode.
    """
    if Mode(mode) is Mode.HEX:
        return _decode_hex(value)
    return _decode_decimal(value)
