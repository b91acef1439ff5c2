"""Seeded pseudo-random numbers for layout jitter.

A seed is derived from the book id and page number with a 31-multiplier string
hash over UTF-16 code units (32-bit wraparound, absolute value). Values come
from a linear congruential generator:

    seed' = (seed * 9301 + 49297) mod 233280
    value = seed' / 233280

No wall clock or system entropy is involved, so equal keys always yield equal
draw sequences.
"""
from models.layout import Range

_LCG_MULTIPLIER = 9301
_LCG_INCREMENT = 49297
_LCG_MODULUS = 233280


def string_hash(text: str) -> int:
    """Return |h| where h is the signed 32-bit polynomial hash of ``text``."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seed_key(book_id: str, page_number: int, revision: int = 0) -> str:
    # Revision 0 keeps the plain key so first layouts stay stable across versions
    if revision:
        return f"{book_id}-{page_number}-r{revision}"
    return f"{book_id}-{page_number}"


def make_seed(book_id: str, page_number: int, revision: int = 0) -> int:
    return string_hash(seed_key(book_id, page_number, revision))


class SeededRandom:
    """Sequential LCG stream. One instance per page layout; not shared."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed

    def next(self) -> float:
        self._state = (self._state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        return self._state / _LCG_MODULUS


def sample_within(rng: SeededRandom, value_range: Range) -> float:
    """Draw one value in ``[min, max)`` and advance ``rng`` by exactly one step."""
    return value_range.min + rng.next() * (value_range.max - value_range.min)
