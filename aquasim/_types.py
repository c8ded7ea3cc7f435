from __future__ import annotations

import operator
from typing import Callable

HOUR = 3600.0
DAY = 86400.0

_OPS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}

_U32 = 0xFFFFFFFF


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* into [lo, hi]."""
    return max(lo, min(hi, value))


def compare(left: float, op: str, right: float) -> bool:
    """Compare two values using a string operator."""
    fn = _OPS.get(op)
    if fn is None:
        raise ValueError(f"Unknown operator: {op!r}. Expected one of {list(_OPS)}")
    return fn(left, right)


def day_index(timestamp: float) -> int:
    """Integer UTC day number of a timestamp in seconds."""
    return int(timestamp // DAY)


def hash_string(text: str) -> int:
    """djb2 string hash, wrapped to signed 32 bits, returned as abs value.

    h0 = 5381, h = h * 33 + ord(ch) for every character. The intermediate
    value wraps like a signed 32-bit integer so the result is stable across
    platforms and interpreters.
    """
    h = 5381
    for ch in text:
        h = (h * 33 + ord(ch)) & _U32
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class Lcg:
    """Linear-congruential generator with 32-bit state.

    s' = (s * 1664525 + 1013904223) mod 2**32, output s' / 2**32 in [0, 1).
    """

    MULTIPLIER = 1664525
    INCREMENT = 1013904223

    def __init__(self, seed: int) -> None:
        self.state = seed & _U32

    def next(self) -> float:
        self.state = (self.state * self.MULTIPLIER + self.INCREMENT) & _U32
        return self.state / 4294967296.0

    def uniform(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.next()
