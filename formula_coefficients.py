from __future__ import annotations

import re
from fractions import Fraction
from typing import Any, Callable, Optional, Tuple

import sympy

from formula_errors import ParserError

_DECIMAL_RE = re.compile(r"[+-]?\d+")


class Coefficient:
    def __init__(self, name: str, factory: Callable[[Any], Any], bounds: Optional[Tuple[int, int]] = None):
        self.name = name
        self.factory = factory
        self.bounds = bounds

    def __repr__(self):
        return f"Coefficient({self.name})"

    def zero(self):
        return self.factory(0)

    def one(self):
        return self.factory(1)

    def parse(self, text: str):
        if not isinstance(text, str) or not _DECIMAL_RE.fullmatch(text):
            raise ParserError(f"Can't parse '{text}'")
        try:
            return self._check(self.factory(text))
        except (TypeError, ValueError, OverflowError) as err:
            raise ParserError(f"Can't parse '{text}'") from err

    def to_text(self, value) -> str:
        return str(value)

    # Arithmetic raises OverflowError when a bounded type leaves its range.
    def add(self, a, b):
        return self._check(a + b)

    def sub(self, a, b):
        return self._check(a - b)

    def mul(self, a, b):
        return self._check(a * b)

    def neg(self, a):
        return self._check(-a)

    def _check(self, value):
        if self.bounds is not None:
            lo, hi = self.bounds
            if not lo <= value <= hi:
                raise OverflowError(f"{self.name} overflow: {value}")
        return value


def checked_integer(bits: int) -> Coefficient:
    """Signed ``bits``-wide integer that refuses to wrap around."""
    if bits < 2:
        raise ValueError(f"Integer width must be at least 2 bits, got {bits}")
    limit = 1 << (bits - 1)
    return Coefficient(f"i{bits}", int, bounds=(-limit, limit - 1))


INTEGER = Coefficient("int", int)
FRACTION = Coefficient("fraction", Fraction)
SYMPY_INTEGER = Coefficient("sympy.Integer", sympy.Integer)
I32 = checked_integer(32)
I64 = checked_integer(64)
