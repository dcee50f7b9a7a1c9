"""
Hamming distance between two 64-bit fingerprints.

Two interchangeable strategies with identical results over [0, 2**64 - 1]:
- bitwise: test each of the 64 bit positions with a mask.
- popcount: count the set bits of a XOR b in one call.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from encoding import BITS, MASK64, EncodedHash, Mode, decode
from errors import ConfigLoadError

Strategy = Callable[[int, int], int]


def hamming_bitwise(a: int, b: int) -> int:
    """Count differing bits over all 64 positions, one mask at a time."""
    dh = 0
    for i in range(BITS):
        k = 1 << i
        if (a & k) != (b & k):
            dh += 1
    return dh


def hamming_popcount(a: int, b: int) -> int:
    """Population count of a XOR b, restricted to 64 bits."""
    return ((a ^ b) & MASK64).bit_count()


STRATEGIES: Dict[str, Strategy] = {
    "bitwise": hamming_bitwise,
    "popcount": hamming_popcount,
}


def select_strategy(name: str = "auto") -> Strategy:
    """
    Resolve a strategy by name. "auto" prefers popcount when the interpreter
    supports int.bit_count, and falls back to the bitwise loop otherwise.

    Raises:
        ConfigLoadError: for an unknown strategy name.
    """
    key = name.strip().lower()
    if key == "auto":
        return hamming_popcount if hasattr(int, "bit_count") else hamming_bitwise
    try:
        return STRATEGIES[key]
    except KeyError:
        choices = ", ".join(["auto", *STRATEGIES])
        raise ConfigLoadError(
            f"Unknown distance strategy: {name!r} (expected one of: {choices})"
        ) from None


def distance(
    a: EncodedHash,
    b: EncodedHash,
    mode: Mode = Mode.HEX,
    strategy: Optional[Strategy] = None,
) -> int:
    """
    Hamming distance between two encoded hashes of the same mode, in [0, 64].

    Raises:
        MalformedHashError: if either operand does not decode under mode.
    """
    fn = strategy or select_strategy()
    return fn(decode(a, mode), decode(b, mode))
