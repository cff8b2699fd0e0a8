import unittest
from fractions import Fraction

import sympy

from formula_coefficients import FRACTION, I32, INTEGER, SYMPY_INTEGER, checked_integer
from formula_errors import ParserError


class TestCoefficients(unittest.TestCase):
    def test_identities(self):
        for coefficient in (INTEGER, FRACTION, SYMPY_INTEGER, I32):
            self.assertEqual(coefficient.zero(), 0)
            self.assertEqual(coefficient.one(), 1)

    def test_parse_signed_decimal(self):
        self.assertEqual(INTEGER.parse("-12"), -12)
        self.assertEqual(INTEGER.parse("+32"), 32)
        self.assertEqual(FRACTION.parse("7"), Fraction(7))
        self.assertIsInstance(SYMPY_INTEGER.parse("5"), sympy.Integer)

    def test_parse_rejects_non_decimal(self):
        for text in ("", "abc", "1.5", " 3", "1_000", "--1"):
            with self.assertRaises(ParserError):
                INTEGER.parse(text)
        with self.assertRaises(ParserError):
            SYMPY_INTEGER.parse("x")

    def test_checked_integer_bounds(self):
        i8 = checked_integer(8)
        self.assertEqual(i8.parse("-128"), -128)
        with self.assertRaises(ParserError):
            i8.parse("128")
        with self.assertRaises(OverflowError):
            i8.mul(100, 2)
        with self.assertRaises(OverflowError):
            i8.neg(-128)
        self.assertEqual(i8.add(100, 27), 127)

    def test_checked_integer_needs_width(self):
        with self.assertRaises(ValueError):
            checked_integer(1)

    def test_unbounded_integer_never_overflows(self):
        big = INTEGER.parse("9" * 40)
        self.assertEqual(INTEGER.mul(big, big), big * big)


if __name__ == '__main__':
    unittest.main()
