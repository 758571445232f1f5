"""
Checksum and code-space helpers.

A TopCode carries ``sectors`` bits around its data ring, of which exactly
``checksum_bits`` must be set. The rule is cheap and throws out most of the
ring-like clutter a real image produces.
"""

from __future__ import annotations

from itertools import combinations
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .decoder import Reading

DEFAULT_SECTORS = 13
DEFAULT_CHECKSUM_BITS = 5


def checksum(bits: int, target: int = DEFAULT_CHECKSUM_BITS) -> bool:
    return bin(int(bits)).count("1") == target


def rotate_left(bits: int, n: int, sectors: int = DEFAULT_SECTORS) -> int:
    n %= sectors
    mask = (1 << sectors) - 1
    return ((bits << n) | (bits >> (sectors - n))) & mask


def rotate_lowest(bits: int, sectors: int = DEFAULT_SECTORS) -> Tuple[int, int]:
    """Smallest cyclic rotation of ``bits`` and the left shift that produced it."""
    best, shift = bits, 0
    for n in range(1, sectors):
        rotated = rotate_left(bits, n, sectors)
        if rotated < best:
            best, shift = rotated, n
    return best, shift


def valid_codes(sectors: int = DEFAULT_SECTORS, target: int = DEFAULT_CHECKSUM_BITS) -> List[int]:
    """Every canonical code that passes the checksum, ascending.

    For 13 sectors and 5 set bits there are 99 of them.
    """
    codes = set()
    for positions in combinations(range(sectors), target):
        bits = sum(1 << p for p in positions)
        codes.add(rotate_lowest(bits, sectors)[0])
    return sorted(codes)


def validate(reading: Optional["Reading"], *, checksum_bits: int = DEFAULT_CHECKSUM_BITS) -> Optional["Reading"]:
    if reading is None or not checksum(reading.code, checksum_bits):
        return None
    return reading
